# %%
import numpy as np
from graftmask import GraftParams, resolve_mask, restore_frames
# Synthetic recording: 64 x 64 frames, 200 time points, two active patches
rng = np.random.default_rng(0)
stack = rng.normal(100, 2, size=(64, 64, 200))
stack[10:16, 10:16, ::20] += 40
stack[40:44, 30:38, 5::25] += 30
# %%
# Pre-computed mask: first pass computes params.mask only
params = GraftParams.from_config(mask="sigma")
params, _ = resolve_mask(params, stack, verbose=True)
print(params)
# %%
# Second pass applies the stored mask: mask_pixels x time
params, data = resolve_mask(params, stack, verbose=True)
print(data.shape)
# %%
# Explicit boolean mask, data already flattened to pixels x time
mask = np.zeros((64, 64), dtype=bool)
mask[10:16, 10:16] = True
params = GraftParams(mask=mask)
params, data = resolve_mask(params, stack.reshape(-1, 200))
# Back to frames for viewing (non-mask pixels as nan)
frames = restore_frames(data, params.mask, fill_value=np.nan)
print(frames.shape)
# %%
