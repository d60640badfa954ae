from typing import List

from solutions import Solution

_BLOCK_SEP = "  "


def render_layers(solution: Solution) -> str:
    """One text row per x; each row holds one block of y labels per z layer."""
    size = solution.size
    labels = solution.labels()
    rows: List[str] = []
    for x in range(size.x):
        blocks = []
        for z in range(size.z):
            blocks.append("".join(
                labels[(x * size.y + y) * size.z + z] for y in range(size.y)
            ))
        rows.append(_BLOCK_SEP.join(blocks))
    return "\n".join(rows)


def render_placements(solution: Solution) -> str:
    lines = []
    for pl in solution.placements:
        lines.append(f"{pl.kind.label} @ {pl.anchor}  {pl.shape}")
    return "\n".join(lines)


def render_solution(solution: Solution, index: int = None) -> str:
    head = f"Solution {index}" if index is not None else "Solution"
    head += f" ({solution.size}, {len(solution.placements)} pieces)"
    return "\n".join([head, render_placements(solution), "", render_layers(solution)])
