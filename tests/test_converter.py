"""End-to-end tests for the conversion pipeline.

Tests for photo_draw.vectorization.converter:
    - Scenario A: 11-pixel run → 1 path of 10 line segments
    - Scenario B: two separated strokes → 2 paths, each in its own color
    - Scenario C: plus → 4 paths, one per arm
    - Scenario D: thin input is unchanged by thinning (checked end to end)
    - Mask input forms: PixelSet, numpy mask, predicate + size
    - Determinism for a fixed seed across worker counts
    - ImagePathConverter with injected classifiers
    - ImageConversion: background Future, placement transform, translate/scale

Run:
    pytest tests/test_converter.py -v
"""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from photo_draw.utils.color import DEFAULT_COLOR, Color
from photo_draw.utils.validators import VectorizerV1
from photo_draw.vectorization import (
    ImageConversion,
    ImagePathConverter,
    MaskClassifier,
    convert_to_paths,
)
from photo_draw.vectorization.color_sampler import ImageColorLookup
from photo_draw.vectorization.paths import LineSegment
from photo_draw.vectorization.pixels import to_mask


DARK_RED = Color.from_rgb255((150, 0, 0))


def make_config(**sections) -> VectorizerV1:
    data = {"color": {"seed": 0}}
    data.update(sections)
    return VectorizerV1(**data)


@pytest.fixture
def run_pixels():
    return frozenset((x, 5) for x in range(11))


@pytest.fixture
def plus_pixels():
    return frozenset([(5, y) for y in range(2, 9)] + [(x, 5) for x in range(2, 9)])


@pytest.fixture
def two_bars_image():
    """White 12x10 image with a dark red 6x2 bar on top and a blue one below."""
    img = np.full((10, 12, 3), 255, dtype=np.uint8)
    img[1:3, 1:7] = (150, 0, 0)
    img[6:8, 1:7] = (0, 0, 255)
    return img


def black_lookup(p):
    return (0, 0, 0)


# ============================================================================
# SCENARIOS
# ============================================================================

def test_empty_input():
    assert convert_to_paths(frozenset(), black_lookup) == []
    assert convert_to_paths(np.zeros((4, 4), dtype=bool), black_lookup) == []


def test_scenario_a_straight_run(run_pixels):
    results = convert_to_paths(run_pixels, black_lookup, make_config())

    assert len(results) == 1
    path, color = results[0]
    assert len(path.segments) == 10
    assert all(isinstance(s, LineSegment) for s in path.segments)
    assert path.segments[0].start == (0.0, 5.0)
    assert path.segments[-1].end == (10.0, 5.0)
    assert color == Color(0.0, 0.0, 0.0, 1.0)
    assert path.color == color


def test_scenario_b_two_components_no_color_mixing(two_bars_image):
    mask = np.any(two_bars_image != 255, axis=2)
    results = convert_to_paths(mask, ImageColorLookup(two_bars_image), make_config())

    assert len(results) == 2
    (top, top_color), (bottom, bottom_color) = results
    assert top_color == DARK_RED
    assert bottom_color == Color(0.0, 0.0, 1.0, 1.0)

    top_ys = {y for seg in top.segments for _, y in seg.control_points}
    bottom_ys = {y for seg in bottom.segments for _, y in seg.control_points}
    assert top_ys <= {1.0, 2.0}
    assert bottom_ys <= {6.0, 7.0}
    assert not top.intersects(bottom)


def test_scenario_c_plus_four_arms(plus_pixels):
    results = convert_to_paths(plus_pixels, black_lookup, make_config())
    assert len(results) == 4

    polylines = [path.to_polyline() for path, _ in results]
    tips = {(5.0, 2.0), (8.0, 5.0), (5.0, 8.0), (2.0, 5.0)}
    ends = set()
    for poly in polylines:
        ends.add(tuple(poly[0]))
        ends.add(tuple(poly[-1]))
    assert tips <= ends

    # First path reaches the center; the others start next to it
    assert tuple(polylines[0][-1]) == (5.0, 5.0)
    for poly in polylines[1:]:
        assert np.abs(poly[0] - 5.0).sum() == 1.0


def test_scenario_d_thin_input_unchanged(run_pixels):
    """Converting an already-thin run reproduces every input pixel in order."""
    results = convert_to_paths(run_pixels, black_lookup, make_config())
    poly = results[0][0].to_polyline()
    assert [tuple(p) for p in poly.astype(int).tolist()] == [(x, 5) for x in range(11)]


def test_degenerate_path_kept_as_empty():
    """A lone pixel traces to a one-point path → empty VectorPath."""
    results = convert_to_paths({(3, 3)}, black_lookup, make_config())
    assert len(results) == 1
    assert results[0][0].is_empty


# ============================================================================
# INPUT FORMS + DETERMINISM
# ============================================================================

def test_mask_forms_agree(plus_pixels):
    cfg = make_config()
    mask = to_mask(plus_pixels, (12, 12))

    from_set = convert_to_paths(plus_pixels, black_lookup, cfg)
    from_array = convert_to_paths(mask, black_lookup, cfg)
    from_predicate = convert_to_paths(lambda p: p in plus_pixels, black_lookup, cfg, image_size=(12, 12))

    assert from_set == from_array == from_predicate


def test_predicate_requires_size():
    with pytest.raises(ValueError, match="image_size"):
        convert_to_paths(lambda p: True, black_lookup)


def test_seeded_output_independent_of_workers():
    rng = np.random.default_rng(7)
    image = rng.integers(0, 256, size=(40, 40, 3), dtype=np.uint8)
    mask = np.zeros((40, 40), dtype=bool)
    mask[5:9, 3:30] = True
    mask[15:35, 20:23] = True
    mask[30:33, 2:15] = True

    lookup = ImageColorLookup(image)
    single = convert_to_paths(mask, lookup, make_config(concurrency={"max_workers": 1}, color={"seed": 3}))
    many = convert_to_paths(mask, lookup, make_config(concurrency={"max_workers": 8}, color={"seed": 3}))
    again = convert_to_paths(mask, lookup, make_config(concurrency={"max_workers": 8}, color={"seed": 3}))

    assert single == many == again
    assert len(single) >= 3


def test_bezier_mode(run_pixels):
    results = convert_to_paths(run_pixels, black_lookup, make_config(curve_fit={"mode": "bezier"}))
    path, _ = results[0]
    assert path.kind == "bezier"
    assert len(path.segments) == 1


def test_out_of_image_pixels_get_default_color(run_pixels):
    results = convert_to_paths(run_pixels, lambda p: None, make_config())
    assert results[0][1] == DEFAULT_COLOR


# ============================================================================
# IMAGE PATH CONVERTER
# ============================================================================

def test_image_path_converter_default_classifier(two_bars_image):
    converter = ImagePathConverter(two_bars_image, config=make_config())
    results = converter.find_paths()

    assert converter.size == (12, 10)
    assert len(converter.stroke_pixels) == 24
    assert len(results) == 2
    assert [c for _, c in results] == [DARK_RED, Color(0.0, 0.0, 1.0, 1.0)]


def test_image_path_converter_injected_classifier(run_pixels):
    image = np.full((12, 12, 3), 200, dtype=np.uint8)
    classifier = MaskClassifier(to_mask(run_pixels, (12, 12)))
    results = ImagePathConverter(image, classifier, make_config()).find_paths()

    assert len(results) == 1
    assert results[0][1] == Color.from_rgb255((200, 200, 200))


def test_image_path_converter_rejects_gray():
    with pytest.raises(ValueError):
        ImagePathConverter(np.zeros((5, 5), dtype=np.uint8))


# ============================================================================
# IMAGE CONVERSION + PLACEMENT
# ============================================================================

@pytest.fixture
def wide_image():
    """200x100 white image with one dark horizontal run."""
    img = np.full((100, 200, 3), 255, dtype=np.uint8)
    img[50, 20:181] = 0
    return img


def test_placement_transform(wide_image):
    conversion = ImageConversion(wide_image, position=(500.0, 300.0), config=make_config())
    # Longer side 200 px → 400 points: scale 2, centered on (500, 300)
    corners = conversion.transform.numpy() @ np.array([[0, 200], [0, 100], [1, 1]], dtype=np.float64)
    assert corners[:2].T.tolist() == [[300.0, 200.0], [700.0, 400.0]]


def test_conversion_lifecycle(wide_image):
    conversion = ImageConversion(wide_image, position=(0.0, 0.0), dimension=200, config=make_config())
    assert not conversion.is_finished
    assert conversion.get_paths() == []

    future = conversion.convert()
    assert conversion.convert() is future
    future.result(timeout=60)

    assert conversion.is_finished
    paths = conversion.get_paths()
    assert len(paths) == 1
    poly = paths[0][0].to_polyline()
    # scale 1, centered on the origin: x in [-80, 80], y = 0
    assert poly[0].tolist() == [-80.0, 0.0]
    assert poly[-1].tolist() == [80.0, 0.0]


def test_conversion_apply_translate_and_scale(wide_image):
    with ThreadPoolExecutor(max_workers=2) as executor:
        conversion = ImageConversion(
            wide_image, position=(0.0, 0.0), dimension=200, config=make_config(), executor=executor
        )
        conversion.convert().result(timeout=60)

    conversion.apply_scale(0.5)
    conversion.apply_translate(10.0, 5.0)
    poly = conversion.get_paths()[0][0].to_polyline()
    # (20, 50) → scale 0.5 → (10, 25) → translate (-100 + 10, -50 + 5)
    assert poly[0].tolist() == [-80.0, -20.0]
    assert poly[-1].tolist() == [0.0, -20.0]


def test_conversion_rejects_bad_dimension(wide_image):
    with pytest.raises(ValueError):
        ImageConversion(wide_image, position=(0, 0), dimension=-1)
