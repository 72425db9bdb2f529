import asyncio
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from workforce.sync import ExpiringValue, Notification, NotificationCenter


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_value_expires_without_an_event_loop():
    clock = FakeClock()
    holder = ExpiringValue(clock=clock)
    holder.set("hola", ttl=5)

    assert holder.value == "hola"
    assert holder.has_timer is False

    clock.now += 5
    assert holder.value is None


def test_resetting_the_value_replaces_the_pending_timer():
    async def scenario():
        holder = ExpiringValue()
        holder.set("first", ttl=60)
        first_timer = holder._timer
        holder.set("second", ttl=60)
        second_timer = holder._timer
        holder.cancel()
        return first_timer, second_timer, holder

    first_timer, second_timer, holder = asyncio.run(scenario())

    assert first_timer is not second_timer
    assert first_timer.cancelled() is True
    assert second_timer.cancelled() is True
    assert holder.has_timer is False
    assert holder.value is None


def test_timer_clears_the_value():
    async def scenario():
        holder = ExpiringValue()
        holder.set("toast", ttl=0.01)
        before = holder.value
        await asyncio.sleep(0.05)
        return before, holder

    before, holder = asyncio.run(scenario())

    assert before == "toast"
    assert holder.value is None
    assert holder.has_timer is False


def test_notification_center_delivers_and_closes():
    delivered = []
    center = NotificationCenter(delivered.append)
    notification = Notification("💬 Nuevo mensaje", "Ana te ha enviado un mensaje")

    center.notify(notification)
    assert delivered == [notification]
    assert center.current.value is notification

    center.close()
    assert center.current.value is None


def test_default_sink_logs(caplog):
    caplog.set_level("INFO", logger="workforce.sync.notifications")
    NotificationCenter().notify(Notification("✅ Recordatorio completado", "Todos (3) han completado: EPIs"))

    assert "Recordatorio completado" in caplog.text
