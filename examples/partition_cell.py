import logging

import matplotlib.pyplot as plt
import matplotlib.patches as patches
import jax.numpy as jnp
import numpy as onp

from yeelattice import config, grids
from yeelattice.components import Ez
from yeelattice.typing import VolumeEntry
from yeelattice.vectors import vec
from yeelattice.volumes import Volume

logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s: %(message)s")


# 1. Describe a 2D cell with a mirror plane and an expensive region
cell = config.config_from_dict(
    {
        "cell": {"dimensions": "2D", "size": [4.0, 2.0], "resolution": 10},
        "symmetry": [{"kind": "mirror", "direction": "y"}],
        "chunks": {
            "num": 6,
            "effort": [
                {"min": [0.0, -1.0], "max": [2.0, 1.0], "effort": 4.0},
            ],
        },
    }
)
gv = config.build_grid_volume(cell)
sym = config.build_symmetry(cell, gv)

# 2. Split the cell into chunks of similar effort
chunks = config.plan_chunks(cell)
for i, chunk in enumerate(chunks):
    print(f"chunk {i}: {chunk.describe()}")

# 3. Fold a source region spanning the mirror plane
source = VolumeEntry(Volume(vec(gv.dim, -0.5, -0.5), vec(gv.dim, 0.5, 0.5)), Ez, 1.0)
reduced = sym.reduce([source])
print(f"source {source.volume} -> {[(e.volume, e.weight) for e in reduced]}")

# 4. Plot the chunks and the Ez points owned by the first one
fig, ax = plt.subplots()
colors = plt.cm.tab10(onp.arange(len(chunks)))
for chunk, color in zip(chunks, colors):
    lo, hi = chunk.surroundings().min_corner, chunk.surroundings().max_corner
    ax.add_patch(
        patches.Rectangle(
            (lo.x, lo.y), hi.x - lo.x, hi.y - lo.y, facecolor=color, alpha=0.4
        )
    )

coords = grids.lattice_coordinates(chunks[0], Ez) * (0.5 / gv.a)
owned = grids.ownership_mask(chunks[0], Ez)
ax.scatter(coords[owned, 0], coords[owned, 1], s=2, c="k")
ax.scatter(
    coords[jnp.logical_not(owned), 0], coords[jnp.logical_not(owned), 1], s=2, c="r"
)

for entry in reduced:
    lo, hi = entry.volume.min_corner, entry.volume.max_corner
    ax.add_patch(
        patches.Rectangle(
            (lo.x, lo.y), hi.x - lo.x, hi.y - lo.y, fill=False, hatch="//"
        )
    )

ax.set_xlim(gv.surroundings().min_corner.x, gv.surroundings().max_corner.x)
ax.set_ylim(gv.surroundings().min_corner.y, gv.surroundings().max_corner.y)
ax.set_aspect("equal")
ax.set_xlabel("X coordinates")
ax.set_ylabel("Y coordinates")
plt.title("Chunks")
plt.savefig("chunks.png")
plt.close()
