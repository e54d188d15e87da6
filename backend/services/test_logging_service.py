import logging

from services.logging_service import RingBufferHandler


def _emit(handler, name, level, message):
    handler.emit(logging.LogRecord(name, level, __file__, 1, message, None, None))


def test_ring_buffer_keeps_latest_records() -> None:
    handler = RingBufferHandler(maxlen=3)
    for i in range(5):
        _emit(handler, "pipelines.mapping.dls.locator", logging.INFO, f"step {i}")

    messages = [r["message"] for r in handler.get_recent()]
    assert messages == ["step 2", "step 3", "step 4"]
    assert [r["message"] for r in handler.get_recent(limit=1)] == ["step 4"]


def test_ring_buffer_filters_by_level_and_logger() -> None:
    handler = RingBufferHandler()
    _emit(handler, "pipelines.mapping.dls.marker_store", logging.INFO, "loaded")
    _emit(handler, "pipelines.mapping.dls.locator", logging.WARNING, "no convergence")
    _emit(handler, "api.endpoints.dls_endpoints", logging.ERROR, "dataset unavailable")

    assert [r["message"] for r in handler.get_recent(level="warning")] == ["no convergence", "dataset unavailable"]
    assert [r["message"] for r in handler.get_recent(name_prefix="pipelines.mapping.dls")] == ["loaded", "no convergence"]
    # Unknown level names do not filter
    assert len(handler.get_recent(level="chatty")) == 3
