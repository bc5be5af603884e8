from clipboard_god.services import HistoryNotifier


def test_listeners_called_in_registration_order():
    notifier = HistoryNotifier()
    calls = []
    notifier.add_listener(lambda h: calls.append(("first", h)))
    notifier.add_listener(lambda h: calls.append(("second", h)))

    notifier.notify(["x"])

    assert calls == [("first", ["x"]), ("second", ["x"])]


def test_failing_listener_does_not_block_others_and_stays_registered():
    notifier = HistoryNotifier()
    received = []

    def broken(history):
        raise RuntimeError("boom")

    notifier.add_listener(broken)
    notifier.add_listener(received.append)

    notifier.notify([1])
    notifier.notify([2])

    assert received == [[1], [2]]
    assert notifier.listener_count == 2


def test_each_listener_gets_its_own_copy():
    notifier = HistoryNotifier()
    seen = []

    def mutating(history):
        history.clear()

    notifier.add_listener(mutating)
    notifier.add_listener(seen.append)
    notifier.notify(["a", "b"])

    assert seen == [["a", "b"]]


def test_remove_listener():
    notifier = HistoryNotifier()
    calls = []
    notifier.add_listener(calls.append)
    notifier.remove_listener(calls.append)
    notifier.remove_listener(calls.append)

    notifier.notify(["ignored"])

    assert calls == []
    assert notifier.listener_count == 0


def test_listener_may_unregister_itself_during_notify():
    notifier = HistoryNotifier()
    calls = []

    def once(history):
        calls.append(history)
        notifier.remove_listener(once)

    notifier.add_listener(once)
    notifier.notify([1])
    notifier.notify([2])

    assert calls == [[1]]
