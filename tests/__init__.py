"""Test package. Cheap bcrypt cost for every test run; set before app settings load."""

import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
