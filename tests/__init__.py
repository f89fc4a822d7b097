"""Test suite for LaserCalc.

The Qt platform and the data directory are set before LaserCalc is imported, as the
settings singleton resolves its paths at import time.
"""
import os
import tempfile

os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')
os.environ.setdefault('LASERCALC_DISABLE_STYLESHEET', '1')
os.environ.setdefault('LASERCALC_DATA_DIR', tempfile.mkdtemp(prefix='lasercalc_test_data_'))
