from services.notification_service.dispatcher import MediaItem, channel_address
from services.notification_service.events import OrderEventBus

def test_channel_address():
    assert channel_address("0771234567") == "94771234567@c.us"
    assert channel_address("94771234567@c.us") == "94771234567@c.us"

async def test_send_text_reports_failure_without_raising(dispatcher, channel):
    channel.fail_text = True
    assert await dispatcher.send_text("94771234567", "hi") is False

async def test_media_is_capped_and_relative_urls_skipped(dispatcher, channel):
    media = [MediaItem("/uploads/products/rel.jpg")] + [MediaItem(f"https://cdn.test/{i}.jpg") for i in range(7)]
    sent = await dispatcher.send_media("94771234567@c.us", media)
    # The cap applies before filtering: 1 relative + 4 absolute within the first five
    assert sent == 4
    assert all(url.startswith("https://") for _, url, _ in channel.media)

async def test_one_failed_image_does_not_stop_the_rest(dispatcher, channel):
    channel.failing_media.add("https://cdn.test/1.jpg")
    media = [MediaItem(f"https://cdn.test/{i}.jpg", f"c{i}") for i in range(3)]
    assert await dispatcher.send_media("94771234567@c.us", media) == 2
    assert [caption for _, _, caption in channel.media] == ["c0", "c2"]

def test_event_bus_fans_out_and_drops_when_full():
    bus = OrderEventBus(max_queue=1)
    a, b = bus.subscribe(), bus.subscribe()
    assert bus.publish("e1") == 2
    bus.unsubscribe(b)
    assert bus.publish("e2") == 0  # a is full
    assert a.get_nowait() == "e1"
