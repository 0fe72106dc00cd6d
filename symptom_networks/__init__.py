"""
symptom_networks: correlation, Gaussian graphical and Ising networks for
binary psychiatric symptom data.
"""

__version__ = "0.1.0"
