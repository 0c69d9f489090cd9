"""
Configuration classes for the budz-dispatch project.
Defines the tunable constants of assignment, earnings and the courier feed in a
type-safe, extensible way.
"""

from dataclasses import dataclass, field

from utils.env import get_env_float, load_project_dotenv


@dataclass
class AssignmentConfig:
    max_assignment_distance: float = 10.0  # miles
    min_rating: float = 4.0
    max_rating: float = 5.0
    weight_distance: float = 0.4
    weight_rating: float = 0.3
    weight_experience: float = 0.2
    weight_workload: float = 0.1
    default_item_type: str = "flower"
    default_thc: str = "20%"


@dataclass
class EarningsConfig:
    base_rate: float = 5.00
    per_mile_rate: float = 1.50
    per_item_rate: float = 0.50
    tip_percentage: float = 1.00  # Share of the tip passed to the courier


@dataclass(frozen=True)
class ComplianceLimits:
    """Maryland possession ceilings. Fixed, not per jurisdiction."""

    flower_grams: float = 120.0
    concentrate_grams: float = 36.0
    thc_mg: float = 1800.0


@dataclass
class CourierFeedConfig:
    connect_delay_seconds: float = 0.5
    order_interval_seconds: float = 30.0
    location_interval_seconds: float = 30.0
    average_speed_mps: float = 13.4  # about 30 mph
    near_dropoff_seconds: float = 240.0
    arrival_radius_meters: float = 50.0
    home_location: tuple[float, float] = field(default=(39.3476, -76.7379))

    @classmethod
    def from_env(cls) -> "CourierFeedConfig":
        """Build a config from BUDZ_* environment variables (a project .env is honoured)."""
        load_project_dotenv()
        defaults = cls()
        return cls(
            connect_delay_seconds=get_env_float("BUDZ_CONNECT_DELAY_SECONDS", defaults.connect_delay_seconds),
            order_interval_seconds=get_env_float("BUDZ_ORDER_INTERVAL_SECONDS", defaults.order_interval_seconds),
            location_interval_seconds=get_env_float(
                "BUDZ_LOCATION_INTERVAL_SECONDS", defaults.location_interval_seconds
            ),
            average_speed_mps=get_env_float("BUDZ_AVERAGE_SPEED_MPS", defaults.average_speed_mps),
            near_dropoff_seconds=get_env_float("BUDZ_NEAR_DROPOFF_SECONDS", defaults.near_dropoff_seconds),
            arrival_radius_meters=get_env_float("BUDZ_ARRIVAL_RADIUS_METERS", defaults.arrival_radius_meters),
        )


# Example usage:
# feed_config = CourierFeedConfig.from_env()
# selector = AssignmentSelector(AssignmentConfig(max_assignment_distance=5.0))
