"""
NumPy reference kernels for the built-in layers.
"""
