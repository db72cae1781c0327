"""Color space conversions and the ink color palette.

Provides:
    - sRGB → linear RGB conversion (exact transfer function)
    - RGB → Lab color space (CIE L*a*b*, D65 illuminant)
    - Color: immutable RGBA value with channels in [0, 1]
    - SemanticColor: the fixed ink palette offered to users
    - snap_to_semantic(): map a sampled color onto the palette

Used by:
    - vectorization.classifier: LAB thresholding for stroke extraction
    - vectorization.color_sampler: Color construction
    - vectorization.export: semantic color written next to each path

Tensor conversions operate on torch tensors (3, H, W) or (B, 3, H, W).

Invariants:
    - Lab coordinates: L[0,100], a,b[-128,127]
    - Color channels always in [0, 1]
"""

import enum
from dataclasses import dataclass
from typing import Sequence, Tuple

import torch


# ============================================================================
# COLOR SPACE CONVERSIONS
# ============================================================================

def srgb_to_linear(img: torch.Tensor) -> torch.Tensor:
    """Convert sRGB [0,1] to linear RGB [0,1].

    Parameters
    ----------
    img : torch.Tensor
        sRGB image, shape (3, H, W) or (B, 3, H, W), range [0, 1]

    Returns
    -------
    torch.Tensor
        Linear RGB image, same shape, range [0, 1]

    Notes
    -----
    Exact sRGB transfer function:
        - Linear region for small values: x / 12.92
        - Power region: ((x + 0.055) / 1.055)^2.4
    """
    img = torch.clamp(img, 0.0, 1.0)
    linear_mask = img <= 0.04045
    linear = img / 12.92
    power = torch.pow((img + 0.055) / 1.055, 2.4)
    return torch.where(linear_mask, linear, power)


def rgb_to_xyz(rgb: torch.Tensor) -> torch.Tensor:
    """Convert linear RGB to CIE XYZ (D65 illuminant).

    Parameters
    ----------
    rgb : torch.Tensor
        Linear RGB, shape (3, H, W) or (B, 3, H, W), range [0, 1]

    Returns
    -------
    torch.Tensor
        XYZ coordinates, same shape
    """
    mat = torch.tensor([
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041]
    ], dtype=rgb.dtype, device=rgb.device)

    if rgb.ndim == 3:
        return torch.matmul(rgb.permute(1, 2, 0), mat.T).permute(2, 0, 1)
    elif rgb.ndim == 4:
        return torch.matmul(rgb.permute(0, 2, 3, 1), mat.T).permute(0, 3, 1, 2)
    else:
        raise ValueError(f"Expected shape (3, H, W) or (B, 3, H, W), got {tuple(rgb.shape)}")


def xyz_to_lab(xyz: torch.Tensor) -> torch.Tensor:
    """Convert XYZ (D65) to CIE L*a*b*.

    Parameters
    ----------
    xyz : torch.Tensor
        XYZ coordinates, shape (3, H, W) or (B, 3, H, W)

    Returns
    -------
    torch.Tensor
        Lab coordinates, same shape. L: [0, 100], a,b: approximately [-128, 127]

    Notes
    -----
    D65 white point: X=0.95047, Y=1.0, Z=1.08883, 6/29 threshold.
    """
    ref = torch.tensor([0.95047, 1.0, 1.08883], dtype=xyz.dtype, device=xyz.device)
    if xyz.ndim == 3:
        ref = ref.view(3, 1, 1)
        channel_dim = 0
    elif xyz.ndim == 4:
        ref = ref.view(1, 3, 1, 1)
        channel_dim = 1
    else:
        raise ValueError(f"Expected shape (3, H, W) or (B, 3, H, W), got {tuple(xyz.shape)}")

    xyz_norm = xyz / ref

    delta = 6.0 / 29.0
    linear_mask = xyz_norm <= delta ** 3
    linear = xyz_norm / (3.0 * delta * delta) + (4.0 / 29.0)
    power = torch.pow(torch.clamp(xyz_norm, min=0.0), 1.0 / 3.0)
    f = torch.where(linear_mask, linear, power)

    fx, fy, fz = f.unbind(dim=channel_dim)
    L = 116.0 * fy - 16.0
    a = 500.0 * (fx - fy)
    b = 200.0 * (fy - fz)
    return torch.stack([L, a, b], dim=channel_dim)


def rgb_to_lab(img_linear_rgb: torch.Tensor) -> torch.Tensor:
    """Convert linear RGB to CIE L*a*b* (composite of rgb_to_xyz and xyz_to_lab).

    Used for stroke extraction (threshold on the L channel).
    """
    return xyz_to_lab(rgb_to_xyz(img_linear_rgb))


def srgb_u8_to_lab(rgb_u8) -> torch.Tensor:
    """Convert an (H, W, 3) uint8 sRGB array to a (3, H, W) Lab tensor."""
    img = torch.as_tensor(rgb_u8).permute(2, 0, 1).to(torch.float32) / 255.0
    return rgb_to_lab(srgb_to_linear(img))


# ============================================================================
# INK COLORS
# ============================================================================

@dataclass(frozen=True)
class Color:
    """RGBA color with channels in [0, 1]."""
    r: float
    g: float
    b: float
    a: float = 1.0

    def __post_init__(self):
        for name in ("r", "g", "b", "a"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Color channel {name}={value} outside [0, 1]")

    @classmethod
    def from_rgb255(cls, rgb: Sequence[float], alpha: float = 1.0) -> "Color":
        r, g, b = (min(1.0, max(0.0, float(c) / 255.0)) for c in rgb)
        return cls(r, g, b, alpha)

    @property
    def rgb(self) -> Tuple[float, float, float]:
        return (self.r, self.g, self.b)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.r, self.g, self.b, self.a)

    def to_rgb255(self) -> Tuple[int, int, int]:
        return tuple(int(round(c * 255.0)) for c in self.rgb)


# Opaque black: the color of the default (primary) ink
DEFAULT_COLOR = Color(0.0, 0.0, 0.0, 1.0)


class SemanticColor(enum.Enum):
    """Ink colors a user can select, with their light-mode RGB values."""
    PRIMARY = "primary"
    GRAY = "gray"
    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    PURPLE = "purple"

    @property
    def rgb(self) -> Tuple[float, float, float]:
        return _PALETTE[self]

    @property
    def color(self) -> Color:
        return Color(*self.rgb)


_PALETTE = {
    SemanticColor.PRIMARY: (0.0, 0.0, 0.0),
    SemanticColor.GRAY: (0.5568627451, 0.5568627451, 0.5764705882),
    SemanticColor.RED: (0.9270923734, 0.1670316756, 0.03019672818),
    SemanticColor.ORANGE: (0.999529779, 0.5594156384, 0.0),
    SemanticColor.YELLOW: (0.9696072936, 0.8020537496, 0.0),
    SemanticColor.GREEN: (0.3882352941, 0.7921568627, 0.337254902),
    SemanticColor.BLUE: (0.03155988827, 0.4386033714, 0.9659433961),
    SemanticColor.PURPLE: (0.6174378395, 0.2372990549, 0.8458326459),
}

# Only a few snap targets, so a dark or washed-out sample falls back to primary
_SNAP_CANDIDATES = (
    (SemanticColor.RED, (1.0, 0.0, 0.0)),
    (SemanticColor.GREEN, (0.0, 1.0, 0.0)),
    (SemanticColor.BLUE, (0.0, 0.0, 1.0)),
)


def snap_to_semantic(color: Color, tolerance: float = 0.3) -> SemanticColor:
    """Map a sampled ink color onto the selectable palette.

    Parameters
    ----------
    color : Color
        Sampled stroke color
    tolerance : float
        Maximum per-channel distance to the palette entry, default 0.3

    Returns
    -------
    SemanticColor
        RED, GREEN or BLUE when the color is close to that palette entry,
        otherwise PRIMARY

    Notes
    -----
    The candidate is the pure primary with the largest dot product against
    the color (ties keep the earlier candidate). It is accepted only if every
    channel of its palette value is within ``tolerance`` of the color.
    """
    best, best_similarity = None, None
    for semantic, pure in _SNAP_CANDIDATES:
        similarity = sum(c * p for c, p in zip(color.rgb, pure))
        if best_similarity is None or similarity > best_similarity:
            best, best_similarity = semantic, similarity

    distance = max(abs(p - c) for p, c in zip(best.rgb, color.rgb))
    if distance < tolerance:
        return best
    return SemanticColor.PRIMARY
