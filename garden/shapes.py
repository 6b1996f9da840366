"""
Procedural organism geometry.

Builds 2D outlines and the 3D surfaces derived from them:
- Teardrop petals and leaves from two mirrored cubic Bezier arcs
- Organic wobbly layers for decay remnants (three stacked, correlated)
- Radiating crack polygons that taper from root to tip
- Stem curves, stem tubes, sprout buds (lathe) and leaf placement frames

Geometry is a pure function of genome traits. `GeometryCache` memoizes it by
the genome's shape key, so color-only changes never rebuild meshes.

Coordinates: y is up. Remnant outlines live in the ground plane and are laid
flat by mapping outline (x, y) to world (x, z).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import numpy as np
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.ops import unary_union

from garden.genome import BloomGenome, Genome, RemnantGenome, SproutGenome, shape_key
from garden.random_stream import index_jitter

logger = logging.getLogger(__name__)

WORLD_Z = np.array([0.0, 0.0, 1.0])
WORLD_X = np.array([1.0, 0.0, 0.0])

MIN_CRACKS = 4
MAX_CRACKS = 12
CRACK_SEGMENTS = 8
MIN_LAYER_SAMPLES = 32

# Leaves sit at these fractions of stem arc length, then 0.2 + 0.2 * i
LEAF_STEM_POSITIONS = (0.3, 0.5, 0.7)

# Layer size fractions, seed offsets and heights, outermost first
LAYER_FRACTIONS = (1.0, 0.7, 0.45)
LAYER_SEEDS = (1.0, 2.5, 4.2)
LAYER_HEIGHTS = (0.001, 0.015, 0.028)
CRACK_HEIGHT = 0.035


# =============================================================================
# VECTOR UTILITIES
# =============================================================================


def normalize(v: np.ndarray) -> np.ndarray:
    """Unit vector, or zeros for a degenerate input."""
    m = float(np.linalg.norm(v))
    if m < 1e-12:
        return np.zeros_like(v, dtype=float)
    return v / m


def rotate_about_axis(v: np.ndarray, axis: np.ndarray, angle: float) -> np.ndarray:
    """Rotate v around a unit axis by angle (Rodrigues)."""
    c, s = math.cos(angle), math.sin(angle)
    return v * c + np.cross(axis, v) * s + axis * np.dot(axis, v) * (1.0 - c)


def perpendicular_to(tangent: np.ndarray, threshold: float = 0.1) -> np.ndarray:
    """
    Stable unit vector perpendicular to a tangent.

    Crosses with world Z; when the tangent is nearly parallel to Z the cross
    product collapses, so world X is used instead.
    """
    out = np.cross(tangent, WORLD_Z)
    if float(np.dot(out, out)) < threshold * threshold:
        logger.debug("Tangent %s nearly parallel to Z, using X axis", tangent)
        out = np.cross(tangent, WORLD_X)
    return normalize(out)


# =============================================================================
# MESH DATA
# =============================================================================


@dataclass(frozen=True, eq=False)
class MeshData:
    """Indexed triangle mesh: vertices (N, 3) float, faces (M, 3) int."""

    vertices: np.ndarray
    faces: np.ndarray

    @classmethod
    def empty(cls) -> "MeshData":
        return cls(np.zeros((0, 3)), np.zeros((0, 3), dtype=int))

    @property
    def is_empty(self) -> bool:
        return len(self.faces) == 0

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        """Axis-aligned (min, max) corners."""
        if len(self.vertices) == 0:
            return np.zeros(3), np.zeros(3)
        return self.vertices.min(axis=0), self.vertices.max(axis=0)


# =============================================================================
# CURVES AND OUTLINES
# =============================================================================


def cubic_bezier_pts(
    p0: np.ndarray, p1: np.ndarray, p2: np.ndarray, p3: np.ndarray, n: int
) -> np.ndarray:
    """Sample n+1 points along a cubic Bezier curve."""
    t = np.linspace(0.0, 1.0, n + 1)[:, None]
    u = 1.0 - t
    return (
        u**3 * np.asarray(p0, float)
        + 3 * u**2 * t * np.asarray(p1, float)
        + 3 * u * t**2 * np.asarray(p2, float)
        + t**3 * np.asarray(p3, float)
    )


def teardrop_outline(
    length: float,
    width: float,
    low: float = 0.3,
    high: float = 0.8,
    samples: int = 12,
) -> np.ndarray:
    """
    Symmetric teardrop from base (0, 0) to tip (0, length).

    Two cubic arcs share base and tip; their control points sit at
    x = +/- width / 2 and y = low * length, high * length.

    Returns:
        (2 * samples, 2) counter-clockwise outline without a repeated point,
        or an empty array for a degenerate length or width.
    """
    if length <= 0 or width <= 0 or samples < 1:
        return np.zeros((0, 2))
    w = width / 2.0
    base, tip = (0.0, 0.0), (0.0, length)
    right = cubic_bezier_pts(base, (w, low * length), (w, high * length), tip, samples)
    left = cubic_bezier_pts(tip, (-w, high * length), (-w, low * length), base, samples)
    return np.vstack([right[:-1], left[:-1]])


def petal_outline(length: float, width: float, samples: int = 12) -> np.ndarray:
    return teardrop_outline(length, width, 0.3, 0.8, samples)


def leaf_outline(samples: int = 12) -> np.ndarray:
    """Unit-length stem leaf; size is applied by the leaf scale."""
    return teardrop_outline(1.0, 0.4, 0.2, 0.8, samples)


def organic_layer_outline(
    base_radius: float,
    wobble_amount: float,
    aspect_ratio: float,
    seed: float,
    samples: int = 64,
) -> np.ndarray:
    """
    Irregular rounded outline, circular at aspect 1 and squarer as it grows.

    radius(a) = base * (aspect (x) | 1 (y))
                * (1 + wobble * (0.15 sin(2a + s) + 0.1 sin(3a + 1.7s)
                                 + 0.05 cos(5a + 2.3s)))
                * (1 - squareness * sqrt|sin 2a| * 0.15)
    """
    n = max(MIN_LAYER_SAMPLES, int(samples))
    a = np.linspace(0.0, 2.0 * math.pi, n, endpoint=False)
    wobble = (
        np.sin(a * 2 + seed) * 0.15
        + np.sin(a * 3 + seed * 1.7) * 0.1
        + np.cos(a * 5 + seed * 2.3) * 0.05
    )
    total = 1.0 + wobble * wobble_amount
    squareness = min(max((aspect_ratio - 1.0) * 0.3, 0.0), 0.4)
    corners = 1.0 - squareness * np.sqrt(np.abs(np.sin(2 * a))) * 0.15
    x = np.cos(a) * base_radius * aspect_ratio * total * corners
    y = np.sin(a) * base_radius * total * corners
    return np.column_stack([x, y])


def _outline_normals(outline: np.ndarray) -> np.ndarray:
    """Outward unit vertex normals of a closed 2D outline."""
    nxt = np.roll(outline, -1, axis=0)
    edges = nxt - outline
    edge_normals = np.column_stack([edges[:, 1], -edges[:, 0]])
    signed_area = 0.5 * np.sum(outline[:, 0] * nxt[:, 1] - nxt[:, 0] * outline[:, 1])
    if signed_area < 0:
        edge_normals = -edge_normals
    lengths = np.linalg.norm(edge_normals, axis=1, keepdims=True)
    edge_normals = np.divide(edge_normals, lengths, out=np.zeros_like(edge_normals), where=lengths > 1e-12)
    vertex_normals = edge_normals + np.roll(edge_normals, 1, axis=0)
    lengths = np.linalg.norm(vertex_normals, axis=1, keepdims=True)
    return np.divide(vertex_normals, lengths, out=np.zeros_like(vertex_normals), where=lengths > 1e-12)


# =============================================================================
# SURFACE BUILDERS
# =============================================================================


def _ring_faces(rings: int, n: int) -> np.ndarray:
    """Quads between consecutive rings of n vertices, split into triangles."""
    faces = []
    i = np.arange(n)
    j = (i + 1) % n
    for r in range(rings - 1):
        a, b = r * n + i, r * n + j
        c, d = (r + 1) * n + j, (r + 1) * n + i
        faces.append(np.column_stack([a, b, c]))
        faces.append(np.column_stack([a, c, d]))
    if not faces:
        return np.zeros((0, 3), dtype=int)
    return np.vstack(faces)


def flat_mesh(outline: np.ndarray, height: float = 0.0) -> MeshData:
    """
    Fan-triangulate a star-shaped outline lying in the ground plane.

    Outline (x, y) maps to world (x, height, y).
    """
    n = len(outline)
    if n < 3:
        return MeshData.empty()
    center = outline.mean(axis=0)
    pts = np.vstack([outline, center[None, :]])
    vertices = np.column_stack([pts[:, 0], np.full(n + 1, height), pts[:, 1]])
    i = np.arange(n)
    faces = np.column_stack([np.full(n, n), i, (i + 1) % n])
    return MeshData(vertices, faces)


def extrude(
    outline: np.ndarray,
    depth: float,
    bevel_size: float = 0.0,
    bevel_thickness: float = 0.0,
    bevel_segments: int = 0,
) -> MeshData:
    """
    Extrude a star-shaped outline along +z with optional rounded bevel.

    The bevel pushes the side wall out by bevel_size and the caps out by
    bevel_thickness, following a quarter circle over bevel_segments steps.
    """
    outline = np.asarray(outline, dtype=float)
    n = len(outline)
    if n < 3:
        return MeshData.empty()

    if bevel_segments > 0 and (bevel_size > 0 or bevel_thickness > 0):
        quarter = [s / bevel_segments * math.pi / 2 for s in range(bevel_segments + 1)]
        rings = [(bevel_size * math.sin(q), -bevel_thickness * math.cos(q)) for q in quarter]
        rings += [
            (bevel_size * math.sin(q), depth + bevel_thickness * math.cos(q))
            for q in reversed(quarter)
        ]
    else:
        rings = [(0.0, 0.0), (0.0, depth)]

    normals = _outline_normals(outline)
    layers = []
    for offset, z in rings:
        ring = outline + offset * normals
        layers.append(np.column_stack([ring, np.full(n, z)]))

    center = outline.mean(axis=0)
    front = np.array([center[0], center[1], rings[0][1]])
    back = np.array([center[0], center[1], rings[-1][1]])
    vertices = np.vstack(layers + [front[None, :], back[None, :]])

    count = len(rings)
    i = np.arange(n)
    j = (i + 1) % n
    last = (count - 1) * n
    front_cap = np.column_stack([np.full(n, count * n), j, i])
    back_cap = np.column_stack([np.full(n, count * n + 1), last + i, last + j])
    faces = np.vstack([_ring_faces(count, n), front_cap, back_cap])
    return MeshData(vertices, faces)


def lathe(profile: np.ndarray, segments: int = 16) -> MeshData:
    """Revolve a (radius, y) profile around the y axis."""
    profile = np.asarray(profile, dtype=float)
    if len(profile) < 2 or segments < 3:
        return MeshData.empty()
    angles = np.linspace(0.0, 2.0 * math.pi, segments, endpoint=False)
    rings = [
        np.column_stack([r * np.cos(angles), np.full(segments, y), r * np.sin(angles)])
        for r, y in profile
    ]
    return MeshData(np.vstack(rings), _ring_faces(len(profile), segments))


# =============================================================================
# STEM CURVES
# =============================================================================


def _catmull_rom(points: np.ndarray, samples_per_segment: int) -> np.ndarray:
    """Uniform Catmull-Rom through points, end tangents extrapolated."""
    first = 2 * points[0] - points[1]
    last = 2 * points[-1] - points[-2]
    ctrl = np.vstack([first, points, last])
    t = np.linspace(0.0, 1.0, samples_per_segment, endpoint=False)[:, None]
    out = []
    for k in range(1, len(ctrl) - 2):
        p0, p1, p2, p3 = ctrl[k - 1], ctrl[k], ctrl[k + 1], ctrl[k + 2]
        out.append(
            0.5
            * (
                2 * p1
                + (p2 - p0) * t
                + (2 * p0 - 5 * p1 + 4 * p2 - p3) * t**2
                + (3 * p1 - p0 - 3 * p2 + p3) * t**3
            )
        )
    out.append(points[-1][None, :])
    return np.vstack(out)


class StemCurve:
    """Smooth curve through control points, parameterized by arc length."""

    def __init__(self, control_points: np.ndarray, samples_per_segment: int = 64) -> None:
        self.control_points = np.asarray(control_points, dtype=float)
        self.samples = _catmull_rom(self.control_points, samples_per_segment)
        seg = np.linalg.norm(np.diff(self.samples, axis=0), axis=1)
        self.arc = np.concatenate([[0.0], np.cumsum(seg)])

    @property
    def length(self) -> float:
        return float(self.arc[-1])

    def _locate(self, u: float) -> tuple[int, float]:
        target = min(max(u, 0.0), 1.0) * self.length
        k = int(np.searchsorted(self.arc, target, side="right")) - 1
        k = min(max(k, 0), len(self.samples) - 2)
        span = self.arc[k + 1] - self.arc[k]
        frac = 0.0 if span <= 0 else (target - self.arc[k]) / span
        return k, frac

    def point_at(self, u: float) -> np.ndarray:
        """Point at fraction u of arc length."""
        k, frac = self._locate(u)
        return self.samples[k] + frac * (self.samples[k + 1] - self.samples[k])

    def tangent_at(self, u: float) -> np.ndarray:
        """Unit tangent at fraction u of arc length."""
        k, _ = self._locate(u)
        return normalize(self.samples[k + 1] - self.samples[k])


def bloom_stem_curve(stem_bend: float, height: float) -> StemCurve:
    """Stem bowing sideways by 2 * stem_bend at mid height."""
    bend = stem_bend * 2.0
    return StemCurve(
        np.array([[0.0, 0.0, 0.0], [bend * 0.5, height * 0.5, 0.0], [0.0, height, 0.0]])
    )


def sprout_stem_curve(stem_curve: float, stem_height: float) -> StemCurve:
    """Sprout stem from below its bud (negative y) up to the bud at the origin."""
    bottom = -0.9 * stem_height
    return StemCurve(
        np.array([[0.0, bottom, 0.0], [stem_curve * 0.2, bottom * 0.5, 0.0], [0.0, 0.0, 0.0]])
    )


def tube(curve: StemCurve, radius: float, segments: int = 20, radial: int = 8) -> MeshData:
    """Tube of constant radius swept along a stem curve."""
    if radius <= 0 or curve.length <= 0:
        return MeshData.empty()
    angles = np.linspace(0.0, 2.0 * math.pi, radial, endpoint=False)
    rings = []
    for s in range(segments + 1):
        u = s / segments
        center = curve.point_at(u)
        tangent = curve.tangent_at(u)
        normal = perpendicular_to(tangent)
        binormal = np.cross(tangent, normal)
        ring = center + radius * (
            np.cos(angles)[:, None] * normal + np.sin(angles)[:, None] * binormal
        )
        rings.append(ring)
    return MeshData(np.vstack(rings), _ring_faces(segments + 1, radial))


# =============================================================================
# LEAF PLACEMENT
# =============================================================================


@dataclass(frozen=True, eq=False)
class LeafFrame:
    """Where a leaf attaches and which way it points."""

    position: np.ndarray
    direction: np.ndarray  # final pointing direction (unit)
    rotation_axis: np.ndarray  # unit, perpendicular to the tangent
    basis: np.ndarray  # 3x3, columns (rotation_axis, direction, axis x direction)
    stem_fraction: float
    index: int

    def euler_xyz(self) -> tuple[float, float, float]:
        """Intrinsic XYZ Euler angles of the basis."""
        m = self.basis
        m13 = min(max(m[0, 2], -1.0), 1.0)
        y = math.asin(m13)
        if abs(m13) < 0.9999999:
            x = math.atan2(-m[1, 2], m[2, 2])
            z = math.atan2(-m[0, 1], m[0, 0])
        else:
            x = math.atan2(m[2, 1], m[1, 1])
            z = 0.0
        return x, y, z


def leaf_frame(
    point: np.ndarray,
    tangent: np.ndarray,
    index: int,
    orientation_deg: float = 0.0,
    tilt_fraction: float = 0.5,
    stem_fraction: float = 0.0,
) -> LeafFrame:
    """
    Orient a leaf attached to a stem.

    1. "out" = tangent x world Z (world X fallback when nearly parallel)
    2. rotate "out" around the tangent by 180 degrees on odd leaves plus the
       orientation offset, so leaves alternate sides
    3. tilt toward the tangent by tilt_fraction * 90 degrees
    """
    tangent = normalize(np.asarray(tangent, dtype=float))
    out = perpendicular_to(tangent)
    alternate = (index % 2) * math.pi
    out = rotate_about_axis(out, tangent, alternate + math.radians(orientation_deg))
    axis = normalize(np.cross(out, tangent))
    direction = normalize(rotate_about_axis(out, axis, tilt_fraction * math.pi / 2))
    basis = np.column_stack([axis, direction, np.cross(axis, direction)])
    return LeafFrame(
        position=np.asarray(point, dtype=float),
        direction=direction,
        rotation_axis=axis,
        basis=basis,
        stem_fraction=stem_fraction,
        index=index,
    )


def leaf_stem_fraction(index: int) -> float:
    if index < len(LEAF_STEM_POSITIONS):
        return LEAF_STEM_POSITIONS[index]
    return 0.2 + index * 0.2


def stem_leaf_frames(
    curve: StemCurve, count: int, orientation_deg: float, tilt_fraction: float
) -> list[LeafFrame]:
    """Frames for `count` leaves distributed along a stem curve."""
    frames = []
    for i in range(max(count, 0)):
        u = min(leaf_stem_fraction(i), 1.0)
        frames.append(
            leaf_frame(curve.point_at(u), curve.tangent_at(u), i, orientation_deg, tilt_fraction, u)
        )
    return frames


# =============================================================================
# PETALS
# =============================================================================


@dataclass(frozen=True)
class PetalSlot:
    """One petal in the bloom's rings."""

    angle: float  # around the y axis
    row: int
    index: int
    tilt: float  # outward lean in radians
    height: float  # y offset above the bloom center


def petal_layout(petal_count: int, petal_rows: int) -> list[PetalSlot]:
    """
    Rings of petals: row r holds petal_count - 2r petals, offset by half a
    petal. Rows that would hold no petals are skipped.
    """
    slots = []
    for row in range(max(petal_rows, 0)):
        count = petal_count - row * 2
        if count <= 0:
            logger.debug("Skipping petal row %d (count %d)", row, count)
            continue
        for i in range(count):
            slots.append(
                PetalSlot(
                    angle=(i / count) * 2 * math.pi + (row * math.pi) / count,
                    row=row,
                    index=len(slots),
                    tilt=math.pi / 4 + row * 0.2,
                    height=row * 0.15,
                )
            )
    return slots


# =============================================================================
# REMNANT LAYERS AND CRACKS
# =============================================================================


@dataclass(frozen=True, eq=False)
class Layer:
    """One flat decay layer."""

    outline: np.ndarray
    polygon: ShapelyPolygon
    fraction: float
    height: float
    mesh: MeshData


@dataclass(frozen=True, eq=False)
class Crack:
    """One radiating crack as a tapered closed polygon."""

    spine: np.ndarray  # (CRACK_SEGMENTS + 1, 2) polyline from the center
    outline: np.ndarray  # closed polygon vertices
    polygon: ShapelyPolygon
    color_index: int  # index mod 3 into the crack colors
    mesh: MeshData


def decay_layers(
    size: float,
    wobble_amount: float,
    aspect_ratio: float,
    seed: float = 0.0,
    samples: int = 64,
) -> list[Layer]:
    """Three concentric organic layers at 100%, 70% and 45% of size."""
    layers = []
    for fraction, offset, height in zip(LAYER_FRACTIONS, LAYER_SEEDS, LAYER_HEIGHTS):
        outline = organic_layer_outline(size * fraction, wobble_amount, aspect_ratio, seed + offset, samples)
        layers.append(
            Layer(
                outline=outline,
                polygon=ShapelyPolygon(outline),
                fraction=fraction,
                height=height,
                mesh=flat_mesh(outline, height),
            )
        )
    return layers


def crack_count_clamped(count: int) -> int:
    clamped = min(max(int(count), MIN_CRACKS), MAX_CRACKS)
    if clamped != count:
        logger.debug("Crack count %s clamped to %d", count, clamped)
    return clamped


def _crack_spine(index: int, count: int, max_length: float, wobble: float) -> np.ndarray:
    base_angle = (index / count) * 2 * math.pi
    start_angle = base_angle + (index_jitter(index) - 0.25) * 0.26
    step = max_length / CRACK_SEGMENTS
    points = [np.zeros(2)]
    for j in range(1, CRACK_SEGMENTS + 1):
        angle = start_angle + math.sin(j * 2.5 + index * 1.3) * wobble * 0.4
        points.append(points[-1] + step * np.array([math.cos(angle), math.sin(angle)]))
    return np.array(points)


def _thicken(spine: np.ndarray, base_width: float) -> tuple[np.ndarray, np.ndarray]:
    """Left and right offset polylines, half-width tapering to 30% at the tip."""
    tangents = np.gradient(spine, axis=0)
    lengths = np.linalg.norm(tangents, axis=1, keepdims=True)
    tangents = np.divide(tangents, lengths, out=np.zeros_like(tangents), where=lengths > 1e-12)
    perps = np.column_stack([-tangents[:, 1], tangents[:, 0]])
    progress = np.linspace(0.0, 1.0, len(spine))[:, None]
    widths = base_width * (1.0 - progress * 0.7)
    return spine + perps * widths, spine - perps * widths


def crack_polygons(
    count: int,
    size: float,
    wobble: float,
    base_width_fraction: float = 0.06,
    height: float = CRACK_HEIGHT,
) -> list[Crack]:
    """
    Radiating cracks, evenly spaced with a deterministic per-index jitter.

    The count is clamped into [4, 12]. Each crack zig-zags outward over 8
    segments and is thickened into a polygon that never reaches beyond
    0.95 * size from the center.
    """
    count = crack_count_clamped(count)
    max_length = size * 0.95
    base_width = size * base_width_fraction
    cracks = []
    for i in range(count):
        spine = _crack_spine(i, count, max_length, wobble)
        left, right = _thicken(spine, base_width)
        outline = np.vstack([left, right[::-1]])
        extent = float(np.max(np.linalg.norm(outline, axis=1)))
        if extent > max_length > 0:
            factor = max_length / extent
            spine, left, right, outline = spine * factor, left * factor, right * factor, outline * factor
        cracks.append(
            Crack(
                spine=spine,
                outline=outline,
                polygon=ShapelyPolygon(outline),
                color_index=i % 3,
                mesh=_strip_mesh(left, right, height),
            )
        )
    return cracks


def _strip_mesh(left: np.ndarray, right: np.ndarray, height: float) -> MeshData:
    n = len(left)
    pts = np.vstack([left, right])
    vertices = np.column_stack([pts[:, 0], np.full(2 * n, height), pts[:, 1]])
    j = np.arange(n - 1)
    faces = np.vstack([
        np.column_stack([j, n + j, n + j + 1]),
        np.column_stack([j, n + j + 1, j + 1]),
    ])
    return MeshData(vertices, faces)


# =============================================================================
# ORGANISM GEOMETRY
# =============================================================================


@dataclass(frozen=True, eq=False)
class BloomGeometry:
    petal: MeshData  # one petal in local space, base at origin
    petals: tuple[PetalSlot, ...]
    leaf: MeshData  # unit leaf, scaled by leaf_size
    leaves: tuple[LeafFrame, ...]
    leaf_size: float
    stem: StemCurve
    stem_mesh: MeshData
    center_radius: float
    stem_height: float


@dataclass(frozen=True, eq=False)
class SproutGeometry:
    stem: StemCurve
    stem_mesh: MeshData
    bud: MeshData
    bud_profile: np.ndarray
    cotyledon_centers: tuple[np.ndarray, np.ndarray]
    cotyledon_radii: np.ndarray  # ellipsoid semi-axes
    ground_offset: float  # lift so the stem base touches the ground


@dataclass(frozen=True, eq=False)
class RemnantGeometry:
    layers: tuple[Layer, ...]
    cracks: tuple[Crack, ...]
    footprint: object = field(repr=False)  # shapely geometry of the whole scar

    @property
    def radius(self) -> float:
        """Largest plan-view distance of the scar from its center."""
        pts = np.vstack([layer.outline for layer in self.layers])
        return float(np.max(np.linalg.norm(pts, axis=1)))


BLOOM_STEM_HEIGHT = 3.0
BLOOM_STEM_RADIUS = 0.08


def build_bloom(genome: BloomGenome) -> BloomGeometry:
    curve = bloom_stem_curve(genome.stem_bend, BLOOM_STEM_HEIGHT)
    petal = extrude(
        petal_outline(genome.petal_length, genome.petal_width),
        depth=0.1,
        bevel_size=0.05,
        bevel_thickness=0.05,
        bevel_segments=3,
    )
    leaf = extrude(leaf_outline(), depth=0.05)
    leaves = () if genome.leaf_count <= 0 else tuple(
        stem_leaf_frames(curve, genome.leaf_count, genome.leaf_orientation, genome.leaf_angle)
    )
    return BloomGeometry(
        petal=petal,
        petals=tuple(petal_layout(genome.petal_count, genome.petal_rows)),
        leaf=leaf,
        leaves=leaves,
        leaf_size=genome.leaf_size,
        stem=curve,
        stem_mesh=tube(curve, BLOOM_STEM_RADIUS),
        center_radius=0.4 * (genome.petal_width / 2),
        stem_height=BLOOM_STEM_HEIGHT,
    )


def bud_profile(bud_size: float, pointiness: float, steps: int = 10) -> np.ndarray:
    """Lathe profile of a closed bud: rounded base narrowing to a point."""
    radius = 0.154 * bud_size
    height = 0.231 * bud_size
    t = np.linspace(0.0, 1.0, steps + 1)
    x = radius * np.sin(t * math.pi) * (1 - pointiness * 0.5 * t)
    return np.column_stack([x, t * height * 2])


def build_sprout(genome: SproutGenome) -> SproutGeometry:
    curve = sprout_stem_curve(genome.stem_curve, genome.stem_height)
    profile = bud_profile(genome.bud_size, genome.bud_pointiness)
    attach = curve.point_at(0.45)
    side = np.array([0.051, 0.0, 0.0])
    cotyledon_scale = genome.cotyledon_size * 1.54
    return SproutGeometry(
        stem=curve,
        stem_mesh=tube(curve, 0.026 * genome.stem_thickness, segments=32, radial=12),
        bud=lathe(profile),
        bud_profile=profile,
        cotyledon_centers=(attach + side, attach - side),
        cotyledon_radii=0.077 * cotyledon_scale * np.array([1.2, 0.4, 0.8]),
        ground_offset=0.9 * genome.stem_height,
    )


def build_remnant(genome: RemnantGenome) -> RemnantGeometry:
    layers = tuple(decay_layers(genome.size, genome.edge_wobble, genome.aspect_ratio, genome.layer_seed))
    cracks = tuple(crack_polygons(genome.crack_count, genome.size, genome.crack_wobble))
    footprint = unary_union([layers[0].polygon.buffer(0)] + [c.polygon.buffer(0) for c in cracks])
    return RemnantGeometry(layers=layers, cracks=cracks, footprint=footprint)


Geometry = BloomGeometry | SproutGeometry | RemnantGeometry


def build_geometry(genome: Genome) -> Geometry:
    """Geometry for any genome."""
    if isinstance(genome, BloomGenome):
        return build_bloom(genome)
    if isinstance(genome, SproutGenome):
        return build_sprout(genome)
    return build_remnant(genome)


class GeometryCache:
    """Memoizes geometry by genome shape key; colors and transforms never rebuild."""

    def __init__(self) -> None:
        self._store: dict[tuple, Geometry] = {}
        self.hits = 0
        self.misses = 0

    def get(self, genome: Genome) -> Geometry:
        key = shape_key(genome)
        geometry = self._store.get(key)
        if geometry is None:
            self.misses += 1
            geometry = build_geometry(genome)
            self._store[key] = geometry
        else:
            self.hits += 1
        return geometry

    def __len__(self) -> int:
        return len(self._store)

    def clear(self) -> None:
        self._store.clear()
        self.hits = self.misses = 0
