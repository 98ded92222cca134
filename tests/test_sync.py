"""End-to-end tests of the inventory view state against a fake service."""

import asyncio

from inventory_sync.core.guard import SETUP_COMPLETE_MESSAGE
from inventory_sync.core.models import AlertKind, NoticeLevel, SchedulerState
from inventory_sync.core.sync_service import LOAD_FAILED_MESSAGE, REFRESHED_MESSAGE, InventorySync


def test_scheduled_tick_raises_low_stock_alert(fake, sync_settings, make_record):
    fake.serve([make_record(1, "Milk", quantity=10, min_quantity=5)])

    async def scenario():
        async with InventorySync(fake, sync_settings) as sync:
            assert sync.scheduler_state is SchedulerState.RUNNING
            fake.serve([make_record(1, "Milk", quantity=4, min_quantity=5)])

            assert await sync.scheduler.tick()
            first = sync.notifications.drain()

            assert await sync.scheduler.tick()
            second = sync.notifications.drain()
            return sync.snapshot, first, second

    snapshot, first, second = asyncio.run(scenario())
    assert [(n.level, n.alert.record_id, n.alert.kind) for n in first] == [
        (NoticeLevel.WARNING, 1, AlertKind.LOW_STOCK)
    ]
    assert second == []
    assert snapshot[0].quantity == 4


def test_initial_load_never_alerts(fake, sync_settings, make_record):
    fake.serve([make_record(1, quantity=0)])

    async def scenario():
        async with InventorySync(fake, sync_settings) as sync:
            return sync.snapshot, sync.loading, sync.notifications.drain()

    snapshot, loading, notices = asyncio.run(scenario())
    assert len(snapshot) == 1
    assert loading is False
    assert notices == []


def test_placeholder_locks_until_setup_is_complete(fake, sync_settings, make_record):
    fake.serve([make_record(1, "Milk"), make_record(2, "New item", category="-", unit="-")])

    async def scenario():
        async with InventorySync(fake, sync_settings) as sync:
            assert (sync.refresh_enabled, sync.locked) == (False, True)
            assert sync.needs_setup
            assert sync.scheduler_state is SchedulerState.LOCKED
            assert await sync.scheduler.tick() is False
            assert await sync.toggle_auto_refresh() is False

            fake.serve([make_record(1, "Milk"), make_record(2, "New item")])
            await sync.refresh_now()
            await sync.refresh_now()
            assert (sync.refresh_enabled, sync.locked) == (True, False)
            assert sync.scheduler_state is SchedulerState.RUNNING
            return sync.notifications.drain()

    notices = asyncio.run(scenario())
    messages = [n.message for n in notices]
    assert messages.count(SETUP_COMPLETE_MESSAGE) == 1
    assert notices[0].level is NoticeLevel.INFO
    assert messages.count(REFRESHED_MESSAGE) == 2


def test_alerts_are_suppressed_while_setup_is_required(fake, sync_settings, make_record):
    fake.serve([make_record(1, "Milk", quantity=10)])

    async def scenario():
        async with InventorySync(fake, sync_settings) as sync:
            fake.serve([make_record(1, "Milk", quantity=0), make_record(2, category="-")])
            await sync.refresh_now()
            return sync.notifications.drain()

    notices = asyncio.run(scenario())
    assert all(n.alert is None for n in notices)


def test_scheduled_failure_is_silent(fake, sync_settings, make_record):
    fake.serve([make_record(1, "Milk")])

    async def scenario():
        async with InventorySync(fake, sync_settings) as sync:
            before = sync.snapshot
            fake.fail_list = True
            assert await sync.scheduler.tick()
            assert sync.snapshot is before
            assert sync.scheduler_state is SchedulerState.RUNNING
            return sync.notifications.drain()

    assert asyncio.run(scenario()) == []


def test_manual_failure_is_reported_and_keeps_snapshot(fake, sync_settings, make_record):
    fake.serve([make_record(1, "Milk")])

    async def scenario():
        async with InventorySync(fake, sync_settings) as sync:
            before = sync.snapshot
            fake.fail_list = True
            assert await sync.refresh_now() is False
            assert sync.snapshot is before
            assert sync.loading is False
            return sync.notifications.drain()

    notices = asyncio.run(scenario())
    assert [(n.level, n.message) for n in notices] == [(NoticeLevel.ERROR, LOAD_FAILED_MESSAGE)]


def test_stats_fall_back_to_snapshot(fake, sync_settings, make_record):
    fake.serve([
        make_record(1, quantity=10, min_quantity=5),
        make_record(2, quantity=3, min_quantity=5),
        make_record(3, quantity=0, min_quantity=5),
    ])
    fake.fail_stats = True

    async def scenario():
        async with InventorySync(fake, sync_settings) as sync:
            return sync.stats

    stats = asyncio.run(scenario())
    assert (stats.total_items, stats.low_stock_count, stats.out_of_stock_count) == (3, 1, 1)


def test_diff_uses_snapshot_from_fetch_start(fake, sync_settings, make_record):
    fake.serve([make_record(1, "Milk", quantity=10, min_quantity=5)])

    async def scenario():
        async with InventorySync(fake, sync_settings) as sync:
            fake.serve([make_record(1, "Milk", quantity=4, min_quantity=5)])
            fake.list_gate = asyncio.Event()
            tick = asyncio.create_task(sync.scheduler.tick())
            await asyncio.sleep(0)

            # A newer snapshot lands while the scheduled fetch is in flight
            sync.store.replace([make_record(1, "Milk", quantity=3, min_quantity=5)])
            fake.list_gate.set()
            await tick
            return sync.snapshot, sync.notifications.drain()

    snapshot, notices = asyncio.run(scenario())
    assert [n.alert.kind for n in notices if n.alert] == [AlertKind.LOW_STOCK]
    assert snapshot[0].quantity == 4


def test_search_filters_locally_then_reloads(fake, sync_settings, make_record):
    fake.serve([make_record(1, "Milk"), make_record(2, "Flour", category="Dry goods")])

    async def scenario():
        async with InventorySync(fake, sync_settings) as sync:
            sync.set_search_query("  mil")
            local = [r.id for r in sync.visible_rows]
            await sync._debouncer.wait()
            return local, fake.calls

    local, calls = asyncio.run(scenario())
    assert local == [1]
    assert ("list", "mil") in calls


def test_search_burst_reaches_the_server_once(fake, sync_settings, make_record):
    fake.serve([make_record(1, "Milk")])

    async def scenario():
        async with InventorySync(fake, sync_settings) as sync:
            fake.calls.clear()
            for query in ("m", "mi", "mil"):
                sync.set_search_query(query)
            await sync._debouncer.wait()
            return fake.calls

    calls = asyncio.run(scenario())
    assert [c for c in calls if c[0] == "list"] == [("list", "mil")]


def test_selected_category_resets_when_it_disappears(fake, sync_settings, make_record):
    fake.serve([make_record(1, "Milk", category="Dairy"), make_record(2, "Flour", category="Dry")])

    async def scenario():
        async with InventorySync(fake, sync_settings) as sync:
            sync.select_category("Dry")
            assert [r.id for r in sync.visible_rows] == [2]

            fake.serve([make_record(1, "Milk", category="Dairy")])
            await sync.refresh_now()
            return sync.category, [r.id for r in sync.visible_rows], sync.categories

    category, rows, categories = asyncio.run(scenario())
    assert category is None
    assert rows == [1]
    assert categories == ["Dairy"]


def test_status_message_tracks_refresh_state(fake, sync_settings, make_record):
    fake.serve([make_record(1, category="-")])

    async def scenario():
        async with InventorySync(fake, sync_settings) as sync:
            messages = [sync.status_message]
            fake.serve([make_record(1)])
            await sync.refresh_now()
            messages.append(sync.status_message)
            await sync.toggle_auto_refresh()
            messages.append(sync.status_message)
            return messages

    setup, live, manual = asyncio.run(scenario())
    assert setup.startswith("Enter category")
    assert live == "Live updates every 3600s"
    assert manual.startswith("Manage your inventory")


def test_unmount_cancels_the_loop(fake, sync_settings, make_record):
    async def scenario():
        sync = InventorySync(fake, sync_settings)
        async with sync:
            assert sync.scheduler.started
        return sync.scheduler.started

    assert asyncio.run(scenario()) is False
