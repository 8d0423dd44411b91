#%%
import pathlib
import os
if os.getcwd() != str(pathlib.Path(__file__).parent):
    os.chdir(pathlib.Path(__file__).parent)

import numpy as np
from graftmask import GraftParams, resolve_mask

#%%
# Custom config overriding the package thresholds, e.g.
#   [masking.adaptive]
#   block_size = 15
CUSTOM_CONFIG = pathlib.Path("configs") / "example.toml"

#%%
stack = np.load("recording.npy")  # rows x cols x time

#%%
params = GraftParams.from_config(CUSTOM_CONFIG, mask="adaptive")
print(params.threshold_options("adaptive"))
params, _ = resolve_mask(params, stack, verbose=True)
params, data = resolve_mask(params, stack)

# %%
