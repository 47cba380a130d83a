import pytest

from bingo_client.services.game import (
    CardGenerator,
    ClaimAlreadyPending,
    ClaimState,
    ClientEngine,
    ConnectionStatus,
    GamePhase,
    NoWinningPattern,
    PatternDetector,
    ReconnectCoordinator,
)
from bingo_client.services.game.events import GameSnapshot
from bingo_client.services.game.ledger import CallLedger
from bingo_client.services.game.round_state import RoundState
from conftest import PLAYER_ID, ms


DRAWN = [5, 20, 33, 47, 61, 2, 18, 40, 55, 70, 9, 25]


def _active_state(game_id='G-1', drawn=DRAWN, **extra):
    game = {'gameId': game_id, 'drawnNumbers': list(drawn), 'playerCount': 4, 'prizePool': 200}
    game.update(extra)
    return {'phase': 'active', 'activeGame': game}


def test_disconnect_reconnect_snapshot_replaces_round(engine, driver):
    driver.start(card_number=77)
    for n in (74, 73, 72):
        driver.call(n)
    engine.receive('disconnect', {'reason': 'ping timeout'})
    engine.receive('reconnect')
    assert [i.name for i in engine.drain_outbound()] == ['getGameState']
    assert engine.snapshot()['connection'] == 'resyncing'

    engine.receive('gameState', _active_state())

    ledger = engine.round.ledger
    assert engine.phase == GamePhase.ACTIVE
    assert len(ledger) == 12
    assert [e.number for e in ledger] == DRAWN
    assert [e.sequence_index for e in ledger] == list(range(1, 13))
    # nothing from before the outage survives
    assert 74 not in ledger.numbers
    assert engine.round.player_count == 4
    assert engine.round.prize_pool == 200
    # the card belongs to the same game, so it is kept and re-marked
    card = engine.round.card
    assert card.card_number == 77
    assert engine.round.marked == set(card.numbers & set(DRAWN))
    assert engine.snapshot()['connection'] == 'connected'
    assert not engine.reconnect.awaiting_snapshot


def test_calls_continue_after_snapshot(engine, driver):
    driver.start()
    engine.receive('disconnect')
    engine.receive('reconnect')
    engine.receive('gameState', _active_state())
    driver.call(66, call_number=13)
    assert len(engine.round.ledger) == 13
    assert engine.round.ledger.latest.number == 66


def test_events_dropped_while_awaiting_snapshot(engine, driver):
    driver.start()
    engine.receive('disconnect')
    engine.receive('reconnect')
    driver.call(5, call_number=1)
    engine.receive('gameEnded', {'winners': []})
    assert engine.phase == GamePhase.ACTIVE
    assert len(engine.round.ledger) == 0


def test_snapshot_for_another_game_drops_card(engine, driver):
    driver.start(game_id='G-1')
    engine.receive('disconnect')
    engine.receive('reconnect')
    engine.receive('gameState', _active_state(game_id='G-2'))
    assert engine.round.game_id == 'G-2'
    assert engine.round.card is None
    assert engine.round.marked == set()


def test_snapshot_naming_the_card_restores_it(engine, driver):
    driver.start(card_number=None)
    engine.receive('reconnect')
    engine.receive('gameState', _active_state(selectedCard=150))
    assert engine.round.card.card_number == 150
    assert engine.round.card_game_id == 'G-1'


def test_waiting_snapshot_resets_to_idle(engine, driver):
    driver.start()
    driver.call(5)
    engine.receive('reconnect')
    engine.receive('gameState', {'phase': 'waiting'})
    assert engine.phase == GamePhase.IDLE
    assert engine.round.card is None
    assert len(engine.round.ledger) == 0


def test_card_selection_snapshot_restarts_countdown(engine, clock):
    engine.receive('reconnect')
    engine.receive('gameState', {
        'phase': 'card_selection',
        'activeGame': {'gameId': 'G-9', 'endsAt': ms(clock() + 12)},
    })
    assert engine.phase == GamePhase.CARD_SELECTION
    assert engine.round.next_game_id == 'G-9'
    assert engine.round.game_id is None
    updates = [c for c in engine.drain_ui_updates() if c.kind == 'selection_timer']
    assert updates[-1].data['secondsLeft'] == 12
    engine.select_card(3)
    assert engine.drain_outbound()[-1].payload == {'cardNumber': 3, 'gameId': 'G-9'}


def test_retry_budget_exhaustion_forces_idle(store, clock, driver):
    engine = ClientEngine(store=store, player_id=PLAYER_ID, clock=clock, max_retries=3)
    driver.engine = engine
    driver.start()
    engine.receive('disconnect')
    for attempt in (1, 2):
        engine.receive('reconnectFailed', {'attempt': attempt})
        assert engine.phase == GamePhase.ACTIVE
    engine.receive('reconnectFailed', {'attempt': 3})
    assert engine.phase == GamePhase.IDLE
    assert engine.round.card is None
    assert engine.snapshot()['connection'] == 'offline'


def test_offline_recovers_on_reconnect(engine):
    engine.receive('disconnect')
    for _ in range(5):
        engine.receive('reconnectFailed')
    assert engine.reconnect.status == ConnectionStatus.OFFLINE
    engine.receive('reconnect')
    engine.receive('gameState', {'phase': 'idle'})
    assert engine.reconnect.status == ConnectionStatus.CONNECTED


def test_coordinator_budget():
    coordinator = ReconnectCoordinator(max_retries=2)
    coordinator.on_lost('transport close')
    assert not coordinator.available
    assert coordinator.on_retry_failed() is False
    assert coordinator.on_retry_failed() is True
    assert coordinator.status == ConnectionStatus.OFFLINE
    # further failures do not report exhaustion twice
    assert coordinator.on_retry_failed() is False
    coordinator.on_restored()
    assert coordinator.available
    assert coordinator.awaiting_snapshot
    coordinator.on_snapshot()
    assert coordinator.status == ConnectionStatus.CONNECTED


def test_coordinator_rejects_negative_budget():
    with pytest.raises(ValueError):
        ReconnectCoordinator(max_retries=-1)


def test_build_round_keeps_manual_marks_that_were_drawn():
    generator = CardGenerator()
    card = generator.generate(77)
    b_numbers = [n for n in card.column(0)]
    current = RoundState(ledger=CallLedger(), game_id='G-1', card=card, card_game_id='G-1',
                         marked={b_numbers[0], b_numbers[1]})
    snapshot = GameSnapshot(phase=GamePhase.ACTIVE, game_id='G-1', drawn_numbers=(b_numbers[0],))
    fresh = ReconnectCoordinator().build_round(
        snapshot, current, generator, PatternDetector(),
        auto_mark=False, display_limit=50, now=1.0,
    )
    assert fresh is not current
    assert fresh.marked == {b_numbers[0]}
    assert fresh.started_at == 1.0


def _gap_resync(engine, driver, card):
    # skipping a call number forces a getGameState round trip
    off_card = [n for n in range(61, 76) if not card.contains(n)]
    driver.call(off_card[0], call_number=driver.call_number + 2)
    assert [i.name for i in engine.drain_outbound()][-1] == 'getGameState'
    engine.receive('gameState', _active_state(drawn=list(card.column(0)) + [off_card[1]]))


def test_pending_claim_survives_same_round_snapshot(engine, driver):
    driver.start(card_number=77)
    card = engine.round.card
    for number in card.column(0):
        driver.call(number)
    engine.claim_bingo()
    _gap_resync(engine, driver, card)
    assert engine.phase == GamePhase.ACTIVE
    assert engine.round.claim_state == ClaimState.PENDING
    with pytest.raises(ClaimAlreadyPending):
        engine.claim_bingo()
    assert engine.drain_outbound() == []


def test_rejected_pattern_stays_excluded_after_snapshot(engine, driver):
    driver.start(card_number=77)
    card = engine.round.card
    for number in card.column(0):
        driver.call(number)
    engine.claim_bingo()
    engine.receive('claimRejected', {'reason': 'not verified'})
    assert engine.round.pending_pattern is None
    _gap_resync(engine, driver, card)
    assert 'vertical-line-B' in engine.round.rejected_patterns
    assert engine.round.pending_pattern is None
    with pytest.raises(NoWinningPattern):
        engine.claim_bingo()


def test_claim_state_is_not_carried_into_another_game():
    generator = CardGenerator()
    card = generator.generate(77)
    current = RoundState(ledger=CallLedger(), game_id='G-1', card=card, card_game_id='G-1',
                         claim_state=ClaimState.PENDING, rejected_patterns={'vertical-line-B'})
    snapshot = GameSnapshot(phase=GamePhase.ACTIVE, game_id='G-2', drawn_numbers=card.column(0))
    fresh = ReconnectCoordinator().build_round(
        snapshot, current, generator, PatternDetector(),
        auto_mark=True, display_limit=50, now=1.0, current_phase=GamePhase.ACTIVE,
    )
    assert fresh.claim_state == ClaimState.NONE
    assert fresh.rejected_patterns == set()


def test_same_phase_snapshot_restarts_timers_without_phase_change(engine, driver):
    driver.start()
    driver.call(5)
    engine.drain_ui_updates()
    engine.receive('reconnect')
    engine.receive('gameState', _active_state())
    kinds = [c.kind for c in engine.drain_ui_updates()]
    assert 'phase' not in kinds
    assert 'resync' in kinds
    # one game-duration ticker, no leftover next-call countdown
    assert engine.timers.pending == 1
