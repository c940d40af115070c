"""
Core geometric primitives and algorithms implemented using PyTorch.

This module provides the numeric building blocks shared by the bounded Voronoi
pipeline, including:
- A global EPSILON constant for numerical precision.
- Signed polygon area, extent and diameter helpers.
- Orientation and segment intersection predicates (used to detect
  self-intersecting bound polygons).
- Polygon clipping against half-planes (`clip_polygon_halfplane`,
  `clip_polygon_halfplanes`), a Sutherland-Hodgman variant.

All functions operate on float64 tensors of shape (N, 2). Polygons are passed
as open rings (the closing vertex is not repeated) unless stated otherwise.
"""
import numpy as np
import torch

EPSILON = 1e-9 # Global epsilon for float comparisons, scaled by polygon extent where relevant.

DTYPE = torch.float64

# Round-off allowance, in units of machine epsilon times coordinate magnitude.
_ROUNDING_ULPS = 64


def as_points_tensor(points) -> torch.Tensor:
    """
    Converts a sequence of (x, y) pairs into a float64 tensor of shape (N, 2).

    Args:
        points: A tensor, numpy array or nested sequence of coordinate pairs.

    Returns:
        torch.Tensor: Tensor of shape (N, 2) and dtype float64.

    Raises:
        ValueError: If the input cannot be shaped into (N, 2).
    """
    if isinstance(points, torch.Tensor):
        tensor = points.to(DTYPE)
    elif isinstance(points, np.ndarray):
        tensor = torch.from_numpy(np.ascontiguousarray(points, dtype=np.float64))
    else:
        points = list(points)
        if not points:
            return torch.empty((0, 2), dtype=DTYPE)
        try:
            tensor = torch.tensor(points, dtype=DTYPE)
        except (TypeError, ValueError, RuntimeError) as e:
            raise ValueError(f"Points must be a sequence of (x, y) pairs: {e}") from e
    if tensor.numel() == 0:
        return torch.empty((0, 2), dtype=DTYPE)
    if tensor.ndim != 2 or tensor.shape[1] != 2:
        raise ValueError(f"Points must have shape (N, 2), got {tuple(tensor.shape)}.")
    return tensor


# --- Measures ---

def compute_signed_area(polygon_vertices: torch.Tensor) -> float:
    """
    Computes the signed area of a polygon with the shoelace formula.

    Positive for counter-clockwise rings, negative for clockwise ones. A closing
    duplicate vertex, if present, contributes nothing.

    Args:
        polygon_vertices (torch.Tensor): Ordered vertices, shape (N, 2).

    Returns:
        float: Signed area. 0.0 when fewer than 3 vertices are given.
    """
    if polygon_vertices.shape[0] < 3:
        return 0.0
    x = polygon_vertices[:, 0]
    y = polygon_vertices[:, 1]
    x_next = torch.roll(x, shifts=-1)
    y_next = torch.roll(y, shifts=-1)
    return 0.5 * torch.sum(x * y_next - x_next * y).item()


def compute_extent(points: torch.Tensor) -> torch.Tensor:
    """
    Axis-aligned extent of a point set as [[min_x, min_y], [max_x, max_y]].

    Raises:
        ValueError: If `points` is empty.
    """
    if points.shape[0] == 0:
        raise ValueError("Cannot compute the extent of an empty point set.")
    return torch.stack([points.min(dim=0).values, points.max(dim=0).values])


def compute_diameter(points: torch.Tensor) -> float:
    """Largest pairwise distance within a point set (0.0 for fewer than 2 points)."""
    if points.shape[0] < 2:
        return 0.0
    return torch.cdist(points, points, compute_mode="donot_use_mm_for_euclid_dist").max().item()


def rounding_tolerance(points: torch.Tensor) -> float:
    """
    Absolute round-off allowance for computations on `points`.

    Intersections and signed distances lose precision in proportion to the
    magnitude of the coordinates involved, not to the extent of the set, so
    points far from the origin need a larger allowance.
    """
    if points.shape[0] == 0:
        return _ROUNDING_ULPS * torch.finfo(DTYPE).eps
    magnitude = torch.max(torch.abs(points)).item()
    return _ROUNDING_ULPS * torch.finfo(DTYPE).eps * max(1.0, magnitude)


def tolerance_for(points: torch.Tensor, epsilon: float = EPSILON) -> float:
    """
    Boundary tolerance scaled by the extent of `points`, never below `epsilon`
    nor below the round-off allowance of their coordinates.
    """
    if points.shape[0] == 0:
        return epsilon
    extent = compute_extent(points)
    span = torch.max(extent[1] - extent[0]).item()
    return max(epsilon * max(1.0, span), rounding_tolerance(points))


# --- Predicates ---

def orientation_2d(a: torch.Tensor, b: torch.Tensor, c: torch.Tensor) -> torch.Tensor:
    """
    Cross product (b - a) x (c - a), broadcast over leading dimensions.

    Positive when a, b, c turn counter-clockwise, negative when clockwise and
    zero when collinear.
    """
    return (b[..., 0] - a[..., 0]) * (c[..., 1] - a[..., 1]) - (b[..., 1] - a[..., 1]) * (c[..., 0] - a[..., 0])


def _on_segment(a: torch.Tensor, b: torch.Tensor, p: torch.Tensor) -> torch.Tensor:
    # Assumes p is collinear with a-b; checks that it lies within the segment's box.
    return ((torch.minimum(a[..., 0], b[..., 0]) <= p[..., 0]) & (p[..., 0] <= torch.maximum(a[..., 0], b[..., 0])) &
            (torch.minimum(a[..., 1], b[..., 1]) <= p[..., 1]) & (p[..., 1] <= torch.maximum(a[..., 1], b[..., 1])))


def segments_intersect(p1: torch.Tensor, q1: torch.Tensor, p2: torch.Tensor, q2: torch.Tensor) -> torch.Tensor:
    """
    Tests whether segments p1-q1 and p2-q2 intersect, broadcasting over leading dimensions.

    Touching endpoints and collinear overlaps count as intersections.

    Args:
        p1, q1 (torch.Tensor): Endpoints of the first segment(s), shape (..., 2).
        p2, q2 (torch.Tensor): Endpoints of the second segment(s), shape (..., 2).

    Returns:
        torch.Tensor: Boolean tensor with the broadcast leading shape.
    """
    o1 = orientation_2d(p1, q1, p2)
    o2 = orientation_2d(p1, q1, q2)
    o3 = orientation_2d(p2, q2, p1)
    o4 = orientation_2d(p2, q2, q1)

    proper = (torch.sign(o1) * torch.sign(o2) < 0) & (torch.sign(o3) * torch.sign(o4) < 0)
    touching = (((o1 == 0) & _on_segment(p1, q1, p2)) |
                ((o2 == 0) & _on_segment(p1, q1, q2)) |
                ((o3 == 0) & _on_segment(p2, q2, p1)) |
                ((o4 == 0) & _on_segment(p2, q2, q1)))
    return proper | touching


# --- Polygon Clipping (Sutherland-Hodgman against half-planes) ---

def _halfplane_intersect(p1: torch.Tensor, p2: torch.Tensor, d1: float, d2: float) -> torch.Tensor:
    """
    Point where segment p1-p2 crosses the half-plane boundary.

    `d1` and `d2` are the signed distances of the endpoints, one inside and one
    outside the tolerance band. An inside endpoint may still lie slightly past
    the line (0 < d <= tol), so the parameter is clamped to [0, 1] to keep the
    point on the edge.
    """
    t = min(max(d1 / (d1 - d2), 0.0), 1.0)
    return p1 + t * (p2 - p1)


def _dedup_consecutive(vertices: list[torch.Tensor], tol: float) -> list[torch.Tensor]:
    """Removes consecutive near-duplicate vertices, including across the ring's seam."""
    deduped = []
    for v in vertices:
        if not deduped or not torch.allclose(v, deduped[-1], rtol=0.0, atol=tol):
            deduped.append(v)
    if len(deduped) > 1 and torch.allclose(deduped[0], deduped[-1], rtol=0.0, atol=tol):
        deduped.pop()
    return deduped


def clip_polygon_halfplane(
    polygon_vertices: torch.Tensor,
    normal: torch.Tensor,
    offset: float,
    tol: float = EPSILON
) -> torch.Tensor:
    """
    Clips a polygon against a single half-plane `normal . x <= offset`.

    Walks the polygon's edges in order; each endpoint is classified as inside
    (signed distance to the boundary line <= `tol`) or outside. Inside
    endpoints are emitted and edges crossing the boundary emit their
    intersection point.

    Args:
        polygon_vertices (torch.Tensor): Open ring of shape (N, 2).
        normal (torch.Tensor): Half-plane normal of shape (2,). Need not be unit length.
        offset (float): Half-plane offset in the units of `normal`.
        tol (float, optional): Distance within which a vertex counts as on the
                               boundary. Defaults to `EPSILON`.

    Returns:
        torch.Tensor: Open ring of the clipped polygon, shape (M, 2). May hold
                      fewer than 3 vertices if the polygon is (nearly) fully
                      outside; an empty (0, 2) tensor when nothing survives.
    """
    if polygon_vertices.ndim != 2 or polygon_vertices.shape[1] != 2:
        raise ValueError("polygon_vertices must be a tensor of shape (N, 2).")
    n_vertices = polygon_vertices.shape[0]
    if n_vertices == 0:
        return polygon_vertices

    norm = torch.linalg.norm(normal).item()
    if norm == 0.0:
        raise ValueError("Half-plane normal must be non-zero.")
    # Signed Euclidean distances of every vertex to the boundary line
    distances = ((polygon_vertices @ normal.to(polygon_vertices.dtype)) - offset) / norm
    inside = distances <= tol

    if bool(torch.all(inside)):
        return polygon_vertices
    if not bool(torch.any(inside)):
        return torch.empty((0, 2), dtype=polygon_vertices.dtype, device=polygon_vertices.device)

    dist_list = distances.tolist()
    inside_list = inside.tolist()
    output_vertices = []
    s_idx = n_vertices - 1 # Start with the last vertex to form an edge with the first
    for p_idx in range(n_vertices):
        s_in, p_in = inside_list[s_idx], inside_list[p_idx]
        if s_in and p_in: # Both inside -> emit P
            output_vertices.append(polygon_vertices[p_idx])
        elif s_in and not p_in: # Outgoing edge -> emit intersection
            output_vertices.append(_halfplane_intersect(
                polygon_vertices[s_idx], polygon_vertices[p_idx], dist_list[s_idx], dist_list[p_idx]))
        elif not s_in and p_in: # Incoming edge -> emit intersection, then P
            output_vertices.append(_halfplane_intersect(
                polygon_vertices[s_idx], polygon_vertices[p_idx], dist_list[s_idx], dist_list[p_idx]))
            output_vertices.append(polygon_vertices[p_idx])
        s_idx = p_idx

    output_vertices = _dedup_consecutive(output_vertices, tol)
    if not output_vertices:
        return torch.empty((0, 2), dtype=polygon_vertices.dtype, device=polygon_vertices.device)
    return torch.stack(output_vertices)


def clip_polygon_halfplanes(
    polygon_vertices: torch.Tensor,
    normals: torch.Tensor,
    offsets: torch.Tensor,
    tol: float = EPSILON
) -> torch.Tensor:
    """
    Sequentially clips a polygon against every half-plane `normals[k] . x <= offsets[k]`.

    The output of each clipping step is the input polygon of the next one.

    Args:
        polygon_vertices (torch.Tensor): Open ring of shape (N, 2).
        normals (torch.Tensor): Half-plane normals, shape (K, 2).
        offsets (torch.Tensor): Half-plane offsets, shape (K,).
        tol (float, optional): Boundary tolerance passed to each step.

    Returns:
        torch.Tensor: Open ring of the surviving polygon, shape (M, 2).
    """
    if normals.shape[0] != offsets.shape[0]:
        raise ValueError(f"Got {normals.shape[0]} normals but {offsets.shape[0]} offsets.")
    clipped = polygon_vertices
    for k in range(normals.shape[0]):
        if clipped.shape[0] == 0:
            break # Polygon fully clipped
        clipped = clip_polygon_halfplane(clipped, normals[k], offsets[k].item(), tol=tol)
    return clipped


def box_polygon(box: torch.Tensor) -> torch.Tensor:
    """Counter-clockwise open ring of the rectangle [[min_x, min_y], [max_x, max_y]]."""
    (min_x, min_y), (max_x, max_y) = box.tolist()
    return torch.tensor([[min_x, min_y], [max_x, min_y], [max_x, max_y], [min_x, max_y]],
                        dtype=box.dtype, device=box.device)
