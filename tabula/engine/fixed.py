"""Fixed-position resolver -- pixel offsets for left/right pinned columns."""

from dataclasses import dataclass, field

from tabula.engine.columns import Column

DEFAULT_COLUMN_WIDTH = 100


@dataclass(frozen=True)
class FixedOffsets:
    """Per-leaf pin offsets.

    ``left_offsets[i]`` is the summed width of the left-pinned leaves before
    leaf *i* (``None`` unless *i* is left-pinned); ``right_offsets[i]`` is the
    summed width of the right-pinned leaves after it.
    """

    left_offsets: list[int | None] = field(default_factory=list)
    right_offsets: list[int | None] = field(default_factory=list)
    has_fixed_left: bool = False
    has_fixed_right: bool = False

    def to_dict(self) -> dict:
        return {
            "leftOffsets": list(self.left_offsets),
            "rightOffsets": list(self.right_offsets),
            "hasFixedLeft": self.has_fixed_left,
            "hasFixedRight": self.has_fixed_right,
        }


def _width(widths: list[int], i: int) -> int:
    w = widths[i] if i < len(widths) else 0
    return w or DEFAULT_COLUMN_WIDTH


def calculate_fixed_positions(leaves: list[Column], widths: list[int]) -> FixedOffsets:
    """Compute left offsets in one forward pass and right offsets in one backward pass."""
    if not leaves:
        return FixedOffsets()

    n = len(leaves)
    left: list[int | None] = [None] * n
    right: list[int | None] = [None] * n
    has_left = has_right = False

    offset = 0
    for i, col in enumerate(leaves):
        if col.fixed == "left":
            left[i] = offset
            offset += _width(widths, i)
            has_left = True

    offset = 0
    for i in range(n - 1, -1, -1):
        if leaves[i].fixed == "right":
            right[i] = offset
            offset += _width(widths, i)
            has_right = True

    return FixedOffsets(left, right, has_left, has_right)


def is_last_fixed_left(leaves: list[Column], index: int) -> bool:
    """True if leaf *index* is left-pinned and no later leaf is."""
    if leaves[index].fixed != "left":
        return False
    return not any(col.fixed == "left" for col in leaves[index + 1:])


def is_first_fixed_right(leaves: list[Column], index: int) -> bool:
    """True if leaf *index* is right-pinned and no earlier leaf is."""
    if leaves[index].fixed != "right":
        return False
    return not any(col.fixed == "right" for col in leaves[:index])
