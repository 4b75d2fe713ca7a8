from globeanchor.errors import ConfigurationError
from globeanchor.frames import ReferenceFrame, ReferenceFrameSettings
from globeanchor.registry import ReferenceFrameRegistry
from globeanchor.scene import World
from pytest import raises


def test_get_or_create_creates_default_frame():
    world = World()
    registry = ReferenceFrameRegistry(
        default_settings=ReferenceFrameSettings(origin_longitude=17, origin_latitude=49),
        world=world,
    )

    frame = registry.get_or_create()
    assert frame.name == "World"
    assert frame.world is world
    assert frame.origin.lat == 49
    assert "World" in registry
    assert registry.get_or_create("World") is frame
    assert len(registry) == 1


def test_missing_frame_without_creation():
    registry = ReferenceFrameRegistry(create_missing=False)
    assert registry.find("World") is None
    with raises(ConfigurationError):
        registry.get_or_create("World")


def test_register_and_unregister():
    registry = ReferenceFrameRegistry(create_missing=False)
    frame = ReferenceFrame(name="site")
    registry.register(frame, ["site", "backup"])

    assert registry.find("site") is frame
    assert registry.get_or_create("backup") is frame

    registry.unregister(frame)
    assert len(registry) == 0
