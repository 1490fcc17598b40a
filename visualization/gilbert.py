"""
Generalized Hilbert ('gilbert') space-filling curve for arbitrary-sized 2D
rectangular grids, after https://github.com/jakubcerveny/gilbert, used under
the following license:

BSD 2-Clause License

Copyright (c) 2018, Jakub Červený
All rights reserved.

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are met:

* Redistributions of source code must retain the above copyright notice, this
  list of conditions and the following disclaimer.

* Redistributions in binary form must reproduce the above copyright notice,
  this list of conditions and the following disclaimer in the documentation
  and/or other materials provided with the distribution.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.

A block is (x, y, ax, ay, bx, by): origin, major axis vector and orthogonal
axis vector. Halving truncates toward zero.
"""


def _sgn(v):
    return (v > 0) - (v < 0)


def _half(v):
    return int(v / 2)


def _area(block):
    _, _, ax, ay, bx, by = block
    return abs(ax + ay) * abs(bx + by)


def _root_block(width, height):
    if width <= 0 or height <= 0:
        raise ValueError(f"grid size must be positive, got {width}x{height}")
    if width >= height:
        return (0, 0, width, 0, 0, height)
    return (0, 0, 0, height, width, 0)


def _subdivide(x, y, ax, ay, bx, by):
    """Sub-blocks of a non-trivial block, in traversal order."""
    w = abs(ax + ay)
    h = abs(bx + by)

    dax, day = _sgn(ax), _sgn(ay)  # unit major direction
    dbx, dby = _sgn(bx), _sgn(by)  # unit orthogonal direction

    ax2, ay2 = _half(ax), _half(ay)
    bx2, by2 = _half(bx), _half(by)

    w2 = abs(ax2 + ay2)
    h2 = abs(bx2 + by2)

    if 2 * w > 3 * h:
        if w2 % 2 != 0 and w > 2:
            # prefer even steps
            ax2, ay2 = ax2 + dax, ay2 + day

        # long case: split in two parts only
        return [
            (x, y, ax2, ay2, bx, by),
            (x + ax2, y + ay2, ax - ax2, ay - ay2, bx, by),
        ]

    if h2 % 2 != 0 and h > 2:
        # prefer even steps
        bx2, by2 = bx2 + dbx, by2 + dby

    # standard case: one step up, one long horizontal, one step down
    return [
        (x, y, bx2, by2, ax2, ay2),
        (x + bx2, y + by2, ax, ay, bx - bx2, by - by2),
        (x + (ax - dax) + (bx2 - dbx), y + (ay - day) + (by2 - dby),
         -bx2, -by2, -(ax - ax2), -(ay - ay2)),
    ]


def _d2xy(idx, x, y, ax, ay, bx, by):
    w = abs(ax + ay)
    h = abs(bx + by)

    if h == 1:
        return x + _sgn(ax) * idx, y + _sgn(ay) * idx
    if w == 1:
        return x + _sgn(bx) * idx, y + _sgn(by) * idx

    for block in _subdivide(x, y, ax, ay, bx, by):
        size = _area(block)
        if idx < size:
            return _d2xy(idx, *block)
        idx -= size
    raise AssertionError("index outside block")


def gilbert_d2xy(idx, width, height):
    """
    Take a position along the gilbert curve over a width x height grid and
    return its 2D (x, y) coordinate.
    """
    if not 0 <= idx < width * height:
        raise IndexError(f"index {idx} outside curve of length {width * height}")
    return _d2xy(idx, *_root_block(width, height))


def _walk(x, y, ax, ay, bx, by):
    w = abs(ax + ay)
    h = abs(bx + by)

    if h == 1:
        # trivial row fill
        dax, day = _sgn(ax), _sgn(ay)
        for i in range(w):
            yield x + dax * i, y + day * i
        return
    if w == 1:
        # trivial column fill
        dbx, dby = _sgn(bx), _sgn(by)
        for i in range(h):
            yield x + dbx * i, y + dby * i
        return

    for block in _subdivide(x, y, ax, ay, bx, by):
        yield from _walk(*block)


def gilbert_path(width, height):
    """
    Yield every (x, y) of the grid in curve order; the i-th item equals
    gilbert_d2xy(i, width, height).
    """
    yield from _walk(*_root_block(width, height))
