import math
from dataclasses import dataclass, field

from .constants import (
    PERCENT_WALLS_THAT_ARE_WINDOWS,
    AIR_BTU_PER_LB_F,
    AIR_LBS_PER_CUBIC_FT,
    FRACTION_OF_THERMAL_MASS_IN_AIR,
)


@dataclass(frozen=True)
class BuildingGeometry:
    """
    An extremely simple building model: a rectangular prism with windows.

    Inputs:
        floor_space_sq_ft: Total floor space, including a conditioned basement.
        ceiling_height_ft: Average ceiling height.
        num_above_ground_stories: A two story house over a basement is 2.
        length_to_width_ratio: 3 means the footprint is 3x as long as it is wide.
        has_conditioned_basement: Basement counts toward volume, not walls.
    """
    floor_space_sq_ft: float
    ceiling_height_ft: float
    num_above_ground_stories: int
    length_to_width_ratio: float
    has_conditioned_basement: bool

    windows_sq_ft: float = field(init=False)
    exterior_walls_sq_ft: float = field(init=False)
    ceiling_sq_ft: float = field(init=False)
    exterior_floor_sq_ft: float = field(init=False)
    btus_per_degree_f: float = field(init=False)

    def __post_init__(self):
        for name in ('floor_space_sq_ft', 'ceiling_height_ft', 'num_above_ground_stories', 'length_to_width_ratio'):
            value = getattr(self, name)
            if not value > 0:
                raise ValueError(f"Building {name} must be positive, got {value}")

        num_floors = self.num_above_ground_stories + (1 if self.has_conditioned_basement else 0)

        footprint_sq_ft = self.floor_space_sq_ft / num_floors
        footprint_length_ft = math.sqrt(footprint_sq_ft / self.length_to_width_ratio)
        footprint_width_ft = footprint_sq_ft / footprint_length_ft
        perimeter_ft = 2 * footprint_length_ft + 2 * footprint_width_ft

        walls_and_windows_sq_ft = perimeter_ft * self.ceiling_height_ft * self.num_above_ground_stories

        # Manual J rule of thumb
        windows_sq_ft = (PERCENT_WALLS_THAT_ARE_WINDOWS / 100.0) * walls_and_windows_sq_ft

        air_volume_cubic_ft = footprint_sq_ft * self.ceiling_height_ft * num_floors

        # Only ~3% of the effective thermal mass is the air itself (fit from
        # an unheated overnight decay of 0.34 F/hr against a ~5000 BTU/hr loss)
        btus_per_degree_f = (
            air_volume_cubic_ft * AIR_LBS_PER_CUBIC_FT * AIR_BTU_PER_LB_F
        ) / FRACTION_OF_THERMAL_MASS_IN_AIR

        # Frozen dataclass: derived fields are set once, here
        object.__setattr__(self, 'windows_sq_ft', windows_sq_ft)
        object.__setattr__(self, 'exterior_walls_sq_ft', walls_and_windows_sq_ft - windows_sq_ft)
        object.__setattr__(self, 'ceiling_sq_ft', footprint_sq_ft)
        object.__setattr__(self, 'exterior_floor_sq_ft', footprint_sq_ft)
        object.__setattr__(self, 'btus_per_degree_f', btus_per_degree_f)

    @classmethod
    def from_config(cls, config: dict):
        try:
            return cls(
                floor_space_sq_ft=float(config['floor_space_sq_ft']),
                ceiling_height_ft=float(config['ceiling_height_ft']),
                num_above_ground_stories=int(config['num_above_ground_stories']),
                length_to_width_ratio=float(config.get('length_to_width_ratio', 1.0)),
                has_conditioned_basement=bool(config.get('has_conditioned_basement', False)),
            )
        except KeyError as e:
            raise ValueError(f"Missing required building parameter: {e}") from e
