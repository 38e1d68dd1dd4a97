from dataclasses import replace

import pytest

import character_engine as engine
from errors import CooldownError, InactiveCharacterError, ValidationError


def make(strength=10, agility=10, intelligence=10, t=0, name="Hero"):
    return engine.create(name, strength, agility, intelligence, t)


# ---------- create ----------

def test_create_derives_health_and_mana():
    c = make(50, 40, 30, t=123)
    assert c.level == 1
    assert c.experience == 0
    assert c.health == 100 + 2 * 50
    assert c.mana == 50 + 2 * 30
    assert c.last_action_time == 123
    assert c.active is True


@pytest.mark.parametrize("stats", [(9, 10, 10), (10, 101, 10), (10, 10, 0), (100, 100, 101)])
def test_create_rejects_stats_out_of_range(stats):
    with pytest.raises(ValidationError):
        make(*stats)


@pytest.mark.parametrize("name", ["", "   "])
def test_create_rejects_empty_name(name):
    with pytest.raises(ValidationError):
        make(name=name)


def test_create_accepts_bounds():
    c = make(10, 100, 10)
    assert (c.strength, c.agility, c.intelligence) == (10, 100, 10)


# ---------- levels ----------

@pytest.mark.parametrize("exp,level", [
    (0, 1), (99, 1), (100, 2), (249, 2), (250, 3), (999, 4), (1000, 5),
    (2499, 5), (2500, 10), (9999, 10), (99999, 20), (100000, 50), (10**9, 50),
])
def test_level_for(exp, level):
    assert engine.level_for(exp) == level


def test_level_skips_undefined_levels():
    c = make()
    c, _ = engine.apply_progress(c, 1000, 0, 0, 0, 1)
    assert c.level == 5
    c, level_up = engine.apply_progress(c, 1500, 0, 0, 0, 2)
    assert c.level == 10
    assert level_up == 10


def test_level_up_bonuses():
    c = engine.apply_level_up_bonuses(make(20, 20, 20), 10)
    assert c.level == 10
    assert (c.strength, c.agility, c.intelligence) == (24, 24, 24)
    assert c.health == 140 + 10 + 20
    assert c.mana == 90 + 5 + 20


def test_progress_crossing_several_thresholds_applies_bonus_once():
    c = make(50, 40, 30)
    updated, level_up = engine.apply_progress(c, 2500, 1, 2, 3, 77)
    assert level_up == 10
    assert updated.level == 10
    assert updated.strength == 50 + 4 + 1
    assert updated.agility == 40 + 4 + 2
    assert updated.intelligence == 30 + 4 + 3
    assert updated.health == 200 + 30
    assert updated.last_action_time == 77


def test_progress_without_level_up():
    c = make()
    updated, level_up = engine.apply_progress(c, 50, 0, 0, 0, 5)
    assert level_up is None
    assert updated.level == 1
    assert updated.experience == 50
    assert updated.health == c.health


def test_progress_rejects_negative_values():
    with pytest.raises(ValidationError):
        engine.apply_progress(make(), -1, 0, 0, 0, 5)
    with pytest.raises(ValidationError):
        engine.apply_progress(make(), 0, 0, -3, 0, 5)


# ---------- power ----------

def test_battle_power_formula():
    assert engine.battle_power(make(50, 40, 30)) == 165
    assert engine.battle_power(make(10, 10, 10)) == 45


@pytest.mark.parametrize("field", ["strength", "agility", "intelligence", "level"])
def test_battle_power_is_non_decreasing(field):
    base = make(30, 30, 30)
    powers = [engine.battle_power(replace(base, **{field: getattr(base, field) + d})) for d in range(5)]
    assert powers == sorted(powers)


# ---------- battle ----------

def test_strong_attacker_wins():
    a = make(50, 40, 30, t=0)
    b = make(10, 10, 10, t=0)
    result = engine.battle(a, b, b"seed", 3600, "alice")

    assert result.winner_is_attacker is True
    assert result.attacker_power == 165
    assert result.defender_power == 45
    assert 0 <= result.random_factor < 20
    assert result.attacker_exp_gain == 60
    assert result.defender_exp_gain == 10
    assert result.attacker.experience == 60
    assert result.attacker.level == 1
    assert result.defender.experience == 10
    assert result.attacker.last_action_time == 3600
    assert result.defender.last_action_time == 3600
    assert result.attacker_level_up is None


def test_weak_attacker_loses():
    a = make(10, 10, 10, t=0)
    b = make(50, 40, 30, t=0)
    result = engine.battle(a, b, b"seed", 3600)

    assert result.winner_is_attacker is False
    assert result.attacker_exp_gain == 20 + 5 * 1
    assert result.defender_exp_gain == 30 + 8 * 1


def test_battle_applies_level_up():
    a = replace(make(50, 40, 30, t=0), experience=95)
    b = make(10, 10, 10, t=0)
    result = engine.battle(a, b, b"seed", 3600)

    assert result.attacker_level_up == 2
    assert result.attacker.level == 2
    assert result.attacker.strength == 52
    assert result.attacker.health == 200 + 14
    assert result.attacker.mana == 110 + 9


def test_battle_is_deterministic():
    a = make(30, 30, 30, t=0)
    b = make(35, 30, 30, t=0)
    first = engine.battle(a, b, b"entropy", 5000, "alice")
    second = engine.battle(a, b, b"entropy", 5000, "alice")
    assert first == second


def test_random_factor_range():
    values = {engine.random_factor(t, b"x", "c") for t in range(200)}
    assert values <= set(range(20))
    assert len(values) > 1


def test_battle_before_cooldown_fails():
    a = make(50, 40, 30, t=1000)
    b = make(t=0)
    with pytest.raises(CooldownError) as exc:
        engine.battle(a, b, b"seed", 1000 + 3599)
    assert exc.value.remaining == 1


def test_cooldown_helpers():
    c = make(t=100)
    assert engine.cooldown_remaining(c, 100) == 3600
    assert engine.can_battle(c, 100) is False
    assert engine.cooldown_remaining(c, 3700) == 0
    assert engine.can_battle(c, 3700) is True


def test_inactive_characters_cannot_battle():
    a = make(t=0)
    b = engine.toggle_active(make(t=0))
    with pytest.raises(InactiveCharacterError):
        engine.battle(a, b, b"seed", 3600)
    with pytest.raises(InactiveCharacterError):
        engine.battle(b, a, b"seed", 3600)


# ---------- toggle ----------

def test_toggle_twice_restores():
    c = make(t=5)
    once = engine.toggle_active(c)
    assert once.active is False
    assert engine.toggle_active(once) == c


def test_dict_round_trip():
    c = make(50, 40, 30, t=9)
    assert engine.Character.from_dict(c.to_dict()) == c
