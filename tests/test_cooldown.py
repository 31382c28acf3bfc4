from signalwatch.infrastructure.notifications.cooldown import NotifyCooldown


def test_same_key_within_cooldown_is_suppressed(clock):
    cooldown = NotifyCooldown(5.0, clock=clock)

    assert cooldown.try_acquire("r1")
    clock.advance(4.9)
    assert not cooldown.try_acquire("r1")


def test_same_key_after_cooldown_is_allowed(clock):
    cooldown = NotifyCooldown(5.0, clock=clock)

    assert cooldown.try_acquire("r1")
    clock.advance(5.0)
    assert cooldown.try_acquire("r1")


def test_keys_are_independent(clock):
    cooldown = NotifyCooldown(5.0, clock=clock)

    assert cooldown.try_acquire("r1")
    assert cooldown.try_acquire("r2")


def test_empty_key_is_never_suppressed(clock):
    cooldown = NotifyCooldown(5.0, clock=clock)

    assert cooldown.try_acquire("")
    assert cooldown.try_acquire("")
    assert cooldown.tracked_keys == 0


def test_expired_keys_are_pruned(clock):
    cooldown = NotifyCooldown(5.0, clock=clock)
    cooldown.try_acquire("r1")
    cooldown.try_acquire("r2")

    clock.advance(6.0)
    cooldown.try_acquire("r3")

    assert cooldown.tracked_keys == 1


def test_reset_clears_history(clock):
    cooldown = NotifyCooldown(5.0, clock=clock)
    cooldown.try_acquire("r1")

    cooldown.reset()

    assert cooldown.try_acquire("r1")
