import asyncio
import json

import pytest

from core.exceptions import AcquisitionTimeoutError, PermissionDeniedError
from core.models import Coordinate
from navigation_engine import NavigationEngine
from render.bridge import InProcessRenderBridge, MessageRenderBridge
from routing.service import RouteCoordinator
from tests.fakes import (
    OBELISCO,
    OBELISCO_CANDIDATE,
    ORIGIN,
    FakeLocationProvider,
    FakeMapHandle,
    FakePlaces,
)

MIDPOINT = Coordinate(-58.39, -34.602)


def _places() -> FakePlaces:
    return FakePlaces(
        candidates={"Obelisco": [OBELISCO_CANDIDATE]},
        places={OBELISCO_CANDIDATE.selection_label: OBELISCO},
        route_points=[MIDPOINT],
    )


def _engine(places, provider, bridge, *, settle_seconds=0) -> NavigationEngine:
    return NavigationEngine(
        places,
        provider,
        bridge,
        settle_seconds=settle_seconds,
        acquisition_timeout=0.05,
    )


@pytest.mark.asyncio
async def test_obelisco_end_to_end() -> None:
    places = _places()
    provider = FakeLocationProvider(ORIGIN)
    handle = FakeMapHandle()
    bridge = InProcessRenderBridge(handle)
    bridge.mark_ready()
    engine = _engine(places, provider, bridge, settle_seconds=0.3)

    assert engine.loading
    await engine.start()

    assert not engine.loading
    assert engine.location_error is None
    assert engine.position.coordinate == ORIGIN
    assert provider.watch_hints == [(5.0, 20.0)]

    typed_at = asyncio.get_running_loop().time()
    engine.on_query_changed("Obelisco")
    await engine.wait_idle()
    assert places.autocomplete_texts == ["Obelisco"]
    assert places.autocomplete_calls[0][1] - typed_at >= 0.29
    assert engine.search_session.candidates == (OBELISCO_CANDIDATE,)
    assert engine.search_session.visible

    destination = await engine.select_candidate(engine.search_session.candidates[0])
    await engine.wait_idle()

    assert destination.coordinate == OBELISCO
    assert engine.destination == destination
    assert engine.route_state == RouteCoordinator.STATE_HAS_ROUTE
    assert places.route_calls == [(ORIGIN, OBELISCO)]
    assert engine.search_session.query_text == "Obelisco, Buenos Aires, Argentina"
    assert not engine.search_session.visible
    assert handle.calls == [
        ("set_user_marker", -58.4, -34.6),
        ("set_destination_marker", -58.3816, -34.6037),
        ("set_route_data", engine.route.to_feature_collection()),
        ("fit_bounds", [[-58.4, -34.6037], [-58.3816, -34.6]], 50),
    ]

    await engine.stop()
    assert provider.watches[0].removed


@pytest.mark.asyncio
async def test_continuous_updates_each_request_one_route() -> None:
    places = _places()
    provider = FakeLocationProvider(ORIGIN)
    handle = FakeMapHandle()
    bridge = InProcessRenderBridge(handle)
    bridge.mark_ready()
    engine = _engine(places, provider, bridge)
    await engine.start()
    await engine.select_candidate(OBELISCO_CANDIDATE)

    first = Coordinate(-58.4002, -34.6001)
    second = Coordinate(-58.4004, -34.6002)
    provider.emit(first)
    await engine.wait_idle()
    provider.emit(second)
    await engine.wait_idle()

    assert places.route_calls == [
        (ORIGIN, OBELISCO),
        (first, OBELISCO),
        (second, OBELISCO),
    ]
    assert engine.route.is_for(second, OBELISCO)
    user_markers = [call for call in handle.calls if call[0] == "set_user_marker"]
    assert user_markers[-2:] == [
        ("set_user_marker", -58.4002, -34.6001),
        ("set_user_marker", -58.4004, -34.6002),
    ]

    # Jitter below the tracking threshold changes nothing.
    provider.emit(Coordinate(-58.40045, -34.6002))
    await engine.wait_idle()
    assert len(places.route_calls) == 3

    await engine.stop()


@pytest.mark.asyncio
async def test_permission_denied_keeps_search_and_withholds_routes() -> None:
    places = _places()
    provider = FakeLocationProvider(denied=True)
    handle = FakeMapHandle()
    bridge = InProcessRenderBridge(handle)
    bridge.mark_ready()
    engine = _engine(places, provider, bridge)

    await engine.start()

    assert not engine.loading
    assert isinstance(engine.location_error, PermissionDeniedError)
    assert engine.position is None
    assert provider.watches == []

    engine.on_query_changed("Obelisco")
    await engine.wait_idle()
    assert engine.search_session.candidates == (OBELISCO_CANDIDATE,)

    await engine.select_candidate(OBELISCO_CANDIDATE)
    assert places.route_calls == []
    assert engine.route_state == RouteCoordinator.STATE_NO_ROUTE

    assert engine.update_position(ORIGIN)
    await engine.wait_idle()
    assert places.route_calls == [(ORIGIN, OBELISCO)]
    assert engine.route_state == RouteCoordinator.STATE_HAS_ROUTE

    await engine.stop()


@pytest.mark.asyncio
async def test_acquisition_timeout_is_recorded() -> None:
    engine = _engine(
        _places(),
        FakeLocationProvider(ORIGIN, hang=True),
        InProcessRenderBridge(FakeMapHandle()),
    )

    await engine.start()

    assert isinstance(engine.location_error, AcquisitionTimeoutError)
    assert not engine.loading
    assert not engine.tracker.is_tracking
    await engine.stop()


@pytest.mark.asyncio
async def test_ready_signal_resends_current_state() -> None:
    sent: list[dict] = []

    async def send(payload: str) -> None:
        sent.append(json.loads(payload))

    places = _places()
    bridge = MessageRenderBridge(send)
    engine = _engine(places, FakeLocationProvider(ORIGIN), bridge)
    await engine.start()
    await engine.select_candidate(OBELISCO_CANDIDATE)
    await engine.wait_idle()
    assert sent == []

    bridge.handle_message("WEBVIEW_READY")
    await engine.wait_idle()

    types = [message["type"] for message in sent]
    assert types[:4] == [
        "set_tracked_position",
        "set_destination_marker",
        "set_route_geometry",
        "fit_viewport",
    ]
    assert types[-3:] == [
        "set_tracked_position",
        "set_destination_marker",
        "set_route_geometry",
    ]
    assert sent[-3]["coordinate"] == [-58.4, -34.6]
    assert sent[-1]["route"] == engine.route.to_feature_collection()

    await engine.stop()


@pytest.mark.asyncio
async def test_clear_destination_resets_map_and_search() -> None:
    places = _places()
    handle = FakeMapHandle()
    bridge = InProcessRenderBridge(handle)
    bridge.mark_ready()
    engine = _engine(places, FakeLocationProvider(ORIGIN), bridge)
    await engine.start()
    await engine.select_candidate(OBELISCO_CANDIDATE)
    handle.calls.clear()

    await engine.clear_destination()
    await engine.clear_destination()

    assert engine.destination is None
    assert engine.route is None
    assert engine.route_state == RouteCoordinator.STATE_NO_DESTINATION
    assert engine.search_session.query_text == ""
    assert handle.calls == [
        ("remove_destination_marker",),
        ("set_route_data", {"type": "FeatureCollection", "features": []}),
    ]

    await engine.stop()


@pytest.mark.asyncio
async def test_stop_silences_late_fixes() -> None:
    places = _places()
    provider = FakeLocationProvider(ORIGIN)
    handle = FakeMapHandle()
    bridge = InProcessRenderBridge(handle)
    bridge.mark_ready()
    engine = _engine(places, provider, bridge)
    await engine.start()
    await engine.stop()
    handle.calls.clear()

    provider.emit(Coordinate(-58.41, -34.61))

    assert handle.calls == []
    assert engine.position.coordinate == ORIGIN
