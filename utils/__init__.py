"""
Utility package setup.

Enables pandas Copy-on-Write globally so subsamples and fold slices of the
dataset never alias each other across worker threads.
"""

import pandas as pd

# Reduce implicit copies across the search.
pd.options.mode.copy_on_write = True
