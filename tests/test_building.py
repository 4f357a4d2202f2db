import pytest

from hvacsim.building import BuildingGeometry


def test_example_house(geometry):
    assert geometry.windows_sq_ft == pytest.approx(525.81, abs=0.01)
    assert geometry.exterior_walls_sq_ft == pytest.approx(2103.25, abs=0.01)
    assert geometry.ceiling_sq_ft == pytest.approx(1000.0)
    assert geometry.exterior_floor_sq_ft == pytest.approx(1000.0)
    assert geometry.btus_per_degree_f == pytest.approx(16200.0)


def test_basement_adds_volume_not_walls():
    without = BuildingGeometry(2000, 8, 2, 1, False)
    with_basement = BuildingGeometry(3000, 8, 2, 1, True)
    # Same 1000 sq ft footprint either way
    assert without.ceiling_sq_ft == pytest.approx(with_basement.ceiling_sq_ft)
    assert without.exterior_walls_sq_ft == pytest.approx(with_basement.exterior_walls_sq_ft)
    assert with_basement.btus_per_degree_f == pytest.approx(without.btus_per_degree_f * 1.5)


@pytest.mark.parametrize("field", ["floor_space_sq_ft", "ceiling_height_ft", "num_above_ground_stories", "length_to_width_ratio"])
def test_non_positive_inputs_rejected(field):
    kwargs = dict(
        floor_space_sq_ft=2000,
        ceiling_height_ft=8,
        num_above_ground_stories=2,
        length_to_width_ratio=1.5,
        has_conditioned_basement=False,
    )
    kwargs[field] = 0
    with pytest.raises(ValueError):
        BuildingGeometry(**kwargs)


def test_from_config():
    g = BuildingGeometry.from_config({
        "floor_space_sq_ft": 1500,
        "ceiling_height_ft": 8,
        "num_above_ground_stories": 1,
    })
    assert g.length_to_width_ratio == 1.0
    assert not g.has_conditioned_basement
    assert g.btus_per_degree_f > 0

    with pytest.raises(ValueError):
        BuildingGeometry.from_config({"floor_space_sq_ft": 1500})
