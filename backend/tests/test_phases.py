import pytest

from bingo_client.services.game import GamePhase, InvalidPhaseTransition, PhaseStateMachine


def _machine_at(phase):
    machine = PhaseStateMachine()
    machine.reset_to(phase)
    return machine


def test_full_round_path():
    machine = PhaseStateMachine()
    for target in (GamePhase.CARD_SELECTION, GamePhase.COUNTDOWN, GamePhase.ACTIVE,
                   GamePhase.ANNOUNCING, GamePhase.CARD_SELECTION):
        machine.transition(target)
        assert machine.phase == target


def test_announcing_may_return_to_idle():
    machine = _machine_at(GamePhase.ANNOUNCING)
    machine.transition(GamePhase.IDLE)
    assert machine.phase == GamePhase.IDLE


def test_active_to_card_selection_is_rejected():
    machine = _machine_at(GamePhase.ACTIVE)
    with pytest.raises(InvalidPhaseTransition):
        machine.transition(GamePhase.CARD_SELECTION)
    assert machine.phase == GamePhase.ACTIVE


@pytest.mark.parametrize('current,target', [
    (GamePhase.IDLE, GamePhase.ACTIVE),
    (GamePhase.IDLE, GamePhase.COUNTDOWN),
    (GamePhase.CARD_SELECTION, GamePhase.ACTIVE),
    (GamePhase.COUNTDOWN, GamePhase.CARD_SELECTION),
    (GamePhase.ACTIVE, GamePhase.IDLE),
    (GamePhase.ACTIVE, GamePhase.ACTIVE),
    (GamePhase.ANNOUNCING, GamePhase.ACTIVE),
])
def test_illegal_transitions_leave_state_unchanged(current, target):
    machine = _machine_at(current)
    assert not machine.can_transition(target)
    with pytest.raises(InvalidPhaseTransition):
        machine.transition(target)
    assert machine.phase == current


def test_listeners_see_every_change():
    machine = PhaseStateMachine()
    seen = []
    machine.add_listener(lambda prev, cur: seen.append((prev, cur)))
    machine.transition(GamePhase.CARD_SELECTION)
    with pytest.raises(InvalidPhaseTransition):
        machine.transition(GamePhase.ANNOUNCING)
    machine.force_idle('retry budget exhausted')
    assert seen == [
        (GamePhase.IDLE, GamePhase.CARD_SELECTION),
        (GamePhase.CARD_SELECTION, GamePhase.IDLE),
    ]


def test_reset_to_current_phase_does_not_notify():
    machine = _machine_at(GamePhase.ACTIVE)
    seen = []
    machine.add_listener(lambda prev, cur: seen.append((prev, cur)))
    assert machine.reset_to(GamePhase.ACTIVE) == GamePhase.ACTIVE
    assert seen == []
    machine.reset_to(GamePhase.IDLE)
    assert seen == [(GamePhase.ACTIVE, GamePhase.IDLE)]


def test_force_idle_from_any_phase():
    for phase in GamePhase:
        machine = _machine_at(phase)
        machine.force_idle('test')
        assert machine.phase == GamePhase.IDLE


def test_wire_names():
    assert GamePhase.from_wire('waiting') == GamePhase.IDLE
    assert GamePhase.from_wire('card_selection') == GamePhase.CARD_SELECTION
    with pytest.raises(ValueError):
        GamePhase.from_wire('paused')
