# =============================================================================
# RideSignal - Synthetic Scenario Generators
# =============================================================================
"""
Fraud pattern injection for replay fixtures and demos.

This module creates realistic Philippine ride-hailing scenarios including:
- Smooth city trips at around 40 km/h (legitimate)
- Traces that teleport between cities (GPS spoofing)
- Trips recorded on rooted emulators running mock-location apps
- Account clusters operated by one person (multi-accounting)

Every generator takes a `random.Random` so a seed reproduces the same data.
"""

import random
from datetime import datetime, timedelta, timezone
from math import cos, radians, sin
from typing import Optional

from ridesignal.generator.models import AccountScenario, Anchor, RideScenario, ScenarioLabel
from ridesignal.models.telemetry import (
    AccountData,
    AccountType,
    Address,
    AppUsageStats,
    DeviceFingerprint,
    DeviceInfo,
    GeoCoordinates,
    GPSPoint,
    RidePattern,
    SensorSample,
    UsageTime,
    Vector3,
)


# =============================================================================
# Philippine Geographic Data
# =============================================================================

# Kept well clear of the default restricted zones
SERVICE_ANCHORS: list[Anchor] = [
    Anchor(name="Ortigas Center", city="Pasig", latitude=14.5869, longitude=121.0614),
    Anchor(name="Marikina Riverbanks", city="Marikina", latitude=14.6330, longitude=121.0830),
    Anchor(name="Fairview", city="Quezon City", latitude=14.7000, longitude=121.0700),
    Anchor(name="Alabang", city="Muntinlupa", latitude=14.4230, longitude=121.0300),
    Anchor(name="Cebu IT Park", city="Cebu City", latitude=10.3308, longitude=123.9054),
    Anchor(name="Davao Poblacion", city="Davao City", latitude=7.0731, longitude=125.6128),
]

METRO_MANILA_ANCHORS: list[Anchor] = [a for a in SERVICE_ANCHORS if 14.3 <= a.latitude <= 14.8]

BARANGAYS: list[str] = [
    "San Antonio", "Kapitolyo", "Ugong", "Santolan", "Concepcion Uno", "Malanday",
    "Greater Lagro", "Pasong Putik", "Ayala Alabang", "Cupang", "Lahug", "Apas",
    "Poblacion", "Buhangin", "Talomo",
]

STREETS: list[str] = [
    "Shaw Boulevard", "Meralco Avenue", "J.P. Rizal Street", "Gil Fernando Avenue",
    "Quirino Highway", "Regalado Avenue", "Madrigal Avenue", "Montillano Street",
    "Salinas Drive", "Gorordo Avenue", "J.P. Laurel Avenue", "Claveria Street",
]

PICKUP_AREAS: list[str] = [
    "Ortigas", "BGC", "Makati CBD", "Cubao", "Eastwood", "Alabang Town Center",
    "SM North EDSA", "Marikina Riverbanks", "IT Park", "Ayala Center Cebu",
]


# =============================================================================
# Filipino Name Data
# =============================================================================

FILIPINO_FIRST_NAMES: list[str] = [
    "Juan", "Jose", "Mark", "John Paul", "Christian", "Rommel", "Jericho", "Paolo",
    "Maria", "Ana", "Kristine", "Jasmine", "Angelica", "Mary Joy", "Rowena", "Liza",
    "Ramon", "Carlo", "Bea", "Nicole",
]

FILIPINO_LAST_NAMES: list[str] = [
    "Dela Cruz", "Santos", "Reyes", "Garcia", "Mendoza", "Bautista", "Villanueva",
    "Aquino", "Ramos", "Castillo", "Fernandez", "Navarro", "Gonzales", "Torres",
    "Manalo", "Pascual",
]

EMAIL_DOMAINS: list[str] = ["gmail.com", "yahoo.com", "outlook.com", "ymail.com"]
CARRIERS: list[str] = ["Globe", "Smart", "DITO", "TNT", "TM"]
MOBILE_PREFIXES: list[str] = ["0917", "0918", "0927", "0939", "0945", "0956", "0961", "0995"]
PAYMENT_METHODS: list[str] = ["gcash", "maya", "cash", "card"]

DEVICE_MODELS: list[tuple[str, str]] = [
    ("Samsung Galaxy A54", "android"),
    ("Xiaomi Redmi Note 12", "android"),
    ("OPPO A78", "android"),
    ("vivo Y36", "android"),
    ("realme C55", "android"),
    ("iPhone 13", "ios"),
    ("iPhone 14 Pro", "ios"),
]
APP_VERSIONS: list[str] = ["5.12.0", "5.12.1", "5.13.0", "5.14.2"]

MOCK_LOCATION_APPS: list[str] = [
    "Fake GPS Location - GPS JoyStick",
    "Mock Locations (fake GPS path)",
    "Fake GPS Go Location Spoofer",
]
EMULATOR_BUILD_PROPS: list[dict[str, str]] = [
    {"ro.hardware": "goldfish", "ro.product.model": "Android SDK built for x86"},
    {"ro.hardware": "ranchu", "ro.kernel.qemu": "1"},
    {"ro.product.manufacturer": "Genymotion", "ro.product.model": "vbox86p"},
]

BASE_EPOCH_MS = 1_760_000_000_000
EARTH_METRES_PER_DEGREE = 111_320.0


# =============================================================================
# Helper Functions
# =============================================================================

def offset_position(latitude: float, longitude: float, bearing: float, distance_m: float) -> tuple[float, float]:
    """Move a position by a short distance along a heading (flat-earth approximation)."""
    dlat = distance_m * cos(radians(bearing)) / EARTH_METRES_PER_DEGREE
    dlng = distance_m * sin(radians(bearing)) / (EARTH_METRES_PER_DEGREE * cos(radians(latitude)))
    return latitude + dlat, longitude + dlng


def generate_filipino_name(rng: random.Random, last_name: Optional[str] = None) -> str:
    """Generate a Filipino full name, optionally keeping a family name."""
    return f"{rng.choice(FILIPINO_FIRST_NAMES)} {last_name or rng.choice(FILIPINO_LAST_NAMES)}"


def generate_mobile_number(rng: random.Random) -> str:
    """Generate a local-format PH mobile number, e.g. 09171234567."""
    return f"{rng.choice(MOBILE_PREFIXES)}{rng.randint(0, 9_999_999):07d}"


def international_format(local_number: str) -> str:
    """0917 123 4567 -> +63 917 123 4567"""
    digits = local_number[1:]
    return f"+63 {digits[:3]} {digits[3:6]} {digits[6:]}"


def generate_email(rng: random.Random, full_name: str) -> str:
    first, _, last = full_name.lower().partition(" ")
    local = f"{first.replace(' ', '')}.{last.replace(' ', '')}{rng.randint(1, 99)}"
    return f"{local}@{rng.choice(EMAIL_DOMAINS)}"


def _hex_id(rng: random.Random, prefix: str, bits: int = 40) -> str:
    return f"{prefix}-{rng.getrandbits(bits):0{bits // 4}x}"


def _near(rng: random.Random, anchor: Anchor, max_offset_m: float) -> GeoCoordinates:
    lat, lng = offset_position(
        anchor.latitude, anchor.longitude, rng.uniform(0.0, 360.0), rng.uniform(0.0, max_offset_m)
    )
    return GeoCoordinates(lat=lat, lng=lng)


def generate_account(
    rng: random.Random,
    anchor: Optional[Anchor] = None,
    account_type: AccountType = AccountType.RIDER,
) -> AccountData:
    """Generate an ordinary account living around an anchor."""
    if anchor is None:
        anchor = rng.choice(SERVICE_ANCHORS)

    name = generate_filipino_name(rng)
    model, platform = rng.choice(DEVICE_MODELS)
    created_at = datetime(2025, 1, 1, tzinfo=timezone.utc) + timedelta(days=rng.randint(0, 300))

    return AccountData(
        id=_hex_id(rng, "acc"),
        account_type=account_type,
        name=name,
        email=generate_email(rng, name),
        phone=generate_mobile_number(rng),
        address=Address(
            street=f"{rng.randint(1, 999)} {rng.choice(STREETS)}",
            barangay=rng.choice(BARANGAYS),
            city=anchor.city,
        ),
        device_id=_hex_id(rng, "dev", 48),
        device_info=DeviceFingerprint(
            model=model,
            platform=platform,
            os_version=str(rng.randint(12, 17)),
        ),
        app_version=rng.choice(APP_VERSIONS),
        ip_addresses=[
            f"112.{rng.randint(198, 211)}.{rng.randint(0, 255)}.{rng.randint(1, 254)}"
            for _ in range(rng.randint(1, 3))
        ],
        network_carrier=rng.choice(CARRIERS),
        wifi_networks=[f"PLDT_HomeFiber_{rng.getrandbits(16):04X}" for _ in range(rng.randint(1, 2))],
        home_location=_near(rng, anchor, 3_000.0),
        frequent_locations=[_near(rng, anchor, 5_000.0) for _ in range(rng.randint(2, 3))],
        ride_patterns=[
            RidePattern(
                pickup_area=rng.choice(PICKUP_AREAS),
                dropoff_area=rng.choice(PICKUP_AREAS),
                hour_of_day=rng.randint(0, 23),
                count=rng.randint(1, 12),
            )
            for _ in range(rng.randint(2, 4))
        ],
        usage_times=[
            UsageTime(day_of_week=rng.randint(0, 6), hour=rng.randint(0, 23), sessions=rng.randint(1, 5))
            for _ in range(rng.randint(3, 6))
        ],
        app_usage=AppUsageStats(
            sessions_per_day=round(rng.uniform(0.5, 6.0), 1),
            avg_session_minutes=round(rng.uniform(2.0, 20.0), 1),
            promo_redemptions=rng.randint(0, 10),
            preferred_payment_method=rng.choice(PAYMENT_METHODS),
        ),
        payment_fingerprints=[_hex_id(rng, "pay")],
        created_at=created_at,
        updated_at=created_at + timedelta(days=rng.randint(0, 30)),
        last_activity=created_at + timedelta(days=rng.randint(30, 60)),
    )


def generate_trace(
    rng: random.Random,
    anchor: Anchor,
    start_ms: int,
    point_count: int = 40,
    interval_s: float = 5.0,
    speed_range_kmh: tuple[float, float] = (35.0, 45.0),
) -> list[GPSPoint]:
    """
    A smooth street-level trace starting at an anchor.

    The heading drifts a few degrees every fix so the path never looks
    ruler-straight, and speed stays within a narrow band.
    """
    lat, lng = anchor.latitude, anchor.longitude
    heading = rng.uniform(0.0, 360.0)
    speed_ms = rng.uniform(*speed_range_kmh) / 3.6
    points = [GPSPoint(
        latitude=lat, longitude=lng, timestamp=start_ms,
        accuracy=rng.uniform(3.0, 8.0), speed=speed_ms, bearing=heading,
    )]

    for i in range(1, point_count):
        heading = (heading + rng.choice((-1, 1)) * rng.uniform(3.0, 10.0)) % 360.0
        speed_ms = rng.uniform(*speed_range_kmh) / 3.6
        lat, lng = offset_position(lat, lng, heading, speed_ms * interval_s)
        points.append(GPSPoint(
            latitude=lat,
            longitude=lng,
            timestamp=start_ms + int(i * interval_s * 1000),
            accuracy=rng.uniform(3.0, 8.0),
            speed=speed_ms,
            bearing=heading,
        ))

    return points


# =============================================================================
# Ride Pattern Generators
# =============================================================================

class NormalTripGenerator:
    """Legitimate trips: smooth Metro Manila traces from a clean device."""

    def __init__(self, rng: random.Random | None = None, point_count: int = 40):
        self.rng = rng or random.Random()
        self.point_count = point_count

    def generate(self) -> RideScenario:
        rng = self.rng
        start_ms = BASE_EPOCH_MS + rng.randint(0, 86_400_000)
        return RideScenario(
            ride_id=_hex_id(rng, "ride"),
            driver_id=_hex_id(rng, "drv"),
            rider_id=_hex_id(rng, "acc"),
            points=generate_trace(rng, rng.choice(METRO_MANILA_ANCHORS), start_ms, self.point_count),
            device_info=DeviceInfo(
                installed_apps=["Google Maps", "GCash", "Messenger"],
                build_props={"ro.hardware": "qcom", "ro.product.model": rng.choice(DEVICE_MODELS)[0]},
            ),
            label=ScenarioLabel.NORMAL,
        )


class TeleportTripGenerator:
    """
    Traces that hop between cities one second apart.

    Each hop appends a short smooth segment around a different anchor, so
    the trace looks locally plausible while jumping hundreds of km.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        segments: int = 4,
        points_per_segment: int = 10,
    ):
        self.rng = rng or random.Random()
        self.segments = segments
        self.points_per_segment = points_per_segment

    def generate(self) -> RideScenario:
        rng = self.rng
        timestamp = BASE_EPOCH_MS + rng.randint(0, 86_400_000)
        # Alternate between Metro Manila and the southern cities so every hop spans hundreds of km
        provincial = [a for a in SERVICE_ANCHORS if a not in METRO_MANILA_ANCHORS]
        anchors = [
            rng.choice(METRO_MANILA_ANCHORS if i % 2 == 0 else provincial)
            for i in range(self.segments)
        ]

        points: list[GPSPoint] = []
        for anchor in anchors:
            segment = generate_trace(rng, anchor, timestamp, self.points_per_segment)
            points.extend(segment)
            timestamp = segment[-1].timestamp + 1_000

        return RideScenario(
            ride_id=_hex_id(rng, "ride"),
            driver_id=_hex_id(rng, "drv"),
            rider_id=_hex_id(rng, "acc"),
            points=points,
            label=ScenarioLabel.TELEPORT,
        )


class SpoofedDeviceGenerator:
    """
    Plausible traces produced on a compromised device.

    The device is rooted with developer options on, runs a mock-location
    app on an emulator build, and its sensors report a phone lying still.
    """

    def __init__(self, rng: random.Random | None = None, point_count: int = 40):
        self.rng = rng or random.Random()
        self.point_count = point_count

    def generate(self) -> RideScenario:
        rng = self.rng
        start_ms = BASE_EPOCH_MS + rng.randint(0, 86_400_000)
        points = generate_trace(rng, rng.choice(METRO_MANILA_ANCHORS), start_ms, self.point_count)

        # Gravity left in, no rotation, no magnetic field
        sensor_data = [
            SensorSample(
                timestamp=point.timestamp,
                accelerometer=Vector3(x=0.0, y=0.0, z=9.81),
                gyroscope=Vector3(),
                magnetometer=Vector3(),
            )
            for point in points
        ]

        return RideScenario(
            ride_id=_hex_id(rng, "ride"),
            driver_id=_hex_id(rng, "drv"),
            rider_id=_hex_id(rng, "acc"),
            points=points,
            device_info=DeviceInfo(
                installed_apps=["Google Maps", rng.choice(MOCK_LOCATION_APPS)],
                is_rooted=True,
                developer_options_enabled=True,
                build_props=rng.choice(EMULATOR_BUILD_PROPS),
                sensor_data=sensor_data,
            ),
            label=ScenarioLabel.SPOOFED_DEVICE,
        )


# =============================================================================
# Account Pattern Generators
# =============================================================================

class MultiAccountClusterGenerator:
    """
    One person behind several accounts.

    Duplicates share the primary's handset, networks, home and habits,
    register the same phone number in a different format, and use a
    sibling's first name with the family surname. Unrelated accounts pad
    the candidate pool.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        duplicates: int = 2,
        noise_accounts: int = 10,
    ):
        self.rng = rng or random.Random()
        self.duplicates = duplicates
        self.noise_accounts = noise_accounts

    def _duplicate_of(self, primary: AccountData, index: int) -> AccountData:
        rng = self.rng
        surname = next((s for s in FILIPINO_LAST_NAMES if (primary.name or "").endswith(s)), None)
        name = generate_filipino_name(rng, surname)
        home = primary.home_location
        if home is not None:
            lat, lng = offset_position(home.lat, home.lng, rng.uniform(0.0, 360.0), rng.uniform(10.0, 120.0))
            home = GeoCoordinates(lat=lat, lng=lng)
        created_at = (primary.created_at or datetime.now(timezone.utc)) + timedelta(days=7 * (index + 1))

        return primary.model_copy(update={
            "id": _hex_id(rng, "acc"),
            "name": name,
            "email": f"{generate_email(rng, name).partition('@')[0]}@{primary.email.partition('@')[2]}",
            "phone": international_format(primary.phone) if index % 2 == 0 else primary.phone,
            "home_location": home,
            "created_at": created_at,
            "updated_at": created_at,
            "last_activity": created_at + timedelta(days=3),
        })

    def generate(self) -> AccountScenario:
        rng = self.rng
        anchor = rng.choice(METRO_MANILA_ANCHORS)
        primary = generate_account(rng, anchor)
        duplicates = [self._duplicate_of(primary, i) for i in range(self.duplicates)]
        noise = [generate_account(rng) for _ in range(self.noise_accounts)]

        pool = duplicates + noise
        rng.shuffle(pool)
        return AccountScenario(
            primary=primary,
            pool=pool,
            linked_ids=[d.id for d in duplicates],
            label=ScenarioLabel.MULTI_ACCOUNT,
        )


class UnrelatedAccountsGenerator:
    """A subject account swept against a pool of strangers."""

    def __init__(self, rng: random.Random | None = None, pool_size: int = 10):
        self.rng = rng or random.Random()
        self.pool_size = pool_size

    def generate(self) -> AccountScenario:
        return AccountScenario(
            primary=generate_account(self.rng),
            pool=[generate_account(self.rng) for _ in range(self.pool_size)],
            label=ScenarioLabel.UNRELATED,
        )


# =============================================================================
# Master Generator
# =============================================================================

class ScenarioMixer:
    """
    Orchestrates generation of mixed legitimate and fraudulent scenarios.

    Usage:
        mixer = ScenarioMixer(fraud_ratio=0.3, seed=7)
        rides = mixer.generate_rides(20)
        accounts = mixer.generate_account_scenarios(5)
    """

    def __init__(
        self,
        fraud_ratio: float = 0.3,
        pool_size: int = 10,
        seed: int | None = None,
    ):
        self.rng = random.Random(seed)
        self.fraud_ratio = fraud_ratio

        self.normal_gen = NormalTripGenerator(self.rng)
        self.teleport_gen = TeleportTripGenerator(self.rng)
        self.spoofed_gen = SpoofedDeviceGenerator(self.rng)
        self.cluster_gen = MultiAccountClusterGenerator(self.rng, noise_accounts=pool_size)
        self.unrelated_gen = UnrelatedAccountsGenerator(self.rng, pool_size=pool_size)

    def _fraud_count(self, size: int) -> int:
        return int(size * self.fraud_ratio)

    def generate_rides(self, size: int) -> list[RideScenario]:
        """Generate rides with spoofed ones mixed in at the fraud ratio."""
        fraud_count = self._fraud_count(size)
        rides = [self.normal_gen.generate() for _ in range(size - fraud_count)]

        for i in range(fraud_count):
            generator = self.teleport_gen if i % 2 == 0 else self.spoofed_gen
            rides.append(generator.generate())

        self.rng.shuffle(rides)
        return rides

    def generate_account_scenarios(self, size: int) -> list[AccountScenario]:
        """Generate account sweeps with planted clusters mixed in at the fraud ratio."""
        fraud_count = max(1, self._fraud_count(size)) if size else 0
        scenarios = [self.cluster_gen.generate() for _ in range(fraud_count)]
        scenarios.extend(self.unrelated_gen.generate() for _ in range(size - fraud_count))

        self.rng.shuffle(scenarios)
        return scenarios
