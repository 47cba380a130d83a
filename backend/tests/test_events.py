import pytest

from bingo_client.services.game import EVENT_NAMES, GamePhase, MalformedEvent, parse_event
from bingo_client.services.game.events import (
    CardSelectionStarted,
    GameStateEvent,
    NumberCalled,
    UiCommand,
)


def test_event_names_cover_wire_protocol():
    assert set(EVENT_NAMES) == {
        'gameState', 'gameCountdown', 'gameStarted', 'numberCalled', 'gameEnded',
        'winnerAnnouncement', 'cardSelectionStarted', 'cardSelectionUpdate', 'playerJoined',
        'bingoClaimed', 'claimRejected', 'error', 'disconnect', 'reconnect', 'reconnectFailed',
    }


def test_number_called():
    event = parse_event('numberCalled', {'number': '42', 'letter': 'N', 'callNumber': 7})
    assert event == NumberCalled(number=42, letter='N', call_number=7)


@pytest.mark.parametrize('payload', [
    {'number': 0, 'callNumber': 1},
    {'number': 76, 'callNumber': 1},
    {'number': 'x', 'callNumber': 1},
    {'number': 4},
    {'number': True, 'callNumber': 1},
])
def test_bad_number_called(payload):
    with pytest.raises(MalformedEvent):
        parse_event('numberCalled', payload)


def test_selection_started_timestamps():
    event = parse_event('cardSelectionStarted', {'nextGameId': 12, 'duration': 30, 'endsAt': 1_700_000_030_000})
    assert event == CardSelectionStarted(next_game_id='12', duration=30.0, ends_at=1_700_000_030.0)
    iso = parse_event('cardSelectionStarted', {'endsAt': '2023-11-14T22:13:50Z'})
    assert iso.ends_at == 1_700_000_030.0
    assert iso.duration == 30


def test_game_state_snapshot():
    event = parse_event('gameState', {
        'phase': 'waiting',
        'activeGame': {'gameId': 'G-1', 'drawnNumbers': [{'number': 3}, 17], 'prizePool': '50'},
    })
    assert isinstance(event, GameStateEvent)
    assert event.snapshot.phase == GamePhase.IDLE
    assert event.snapshot.drawn_numbers == (3, 17)
    assert event.snapshot.prize_pool == 50.0


def test_game_state_unknown_phase():
    with pytest.raises(MalformedEvent):
        parse_event('gameState', {'phase': 'paused'})


def test_winners_accept_legacy_user_key():
    event = parse_event('gameEnded', {'winners': [{'telegramId': 99, 'prizeAmount': 5}]})
    assert event.winners[0].user_id == '99'
    assert event.winners[0].prize_amount == 5.0


def test_payload_must_be_an_object():
    with pytest.raises(MalformedEvent):
        parse_event('playerJoined', ['nope'])
    with pytest.raises(MalformedEvent):
        parse_event('unknown', {})


def test_lifecycle_events_need_no_payload():
    assert parse_event('reconnect') is not None
    assert parse_event('disconnect').reason == ''
    assert parse_event('error', {}).message == 'Unknown error'


def test_ui_command_dict():
    assert UiCommand('notice', {'message': 'hi'}).to_dict() == {'kind': 'notice', 'data': {'message': 'hi'}}
