"""
Concrete implementations: layers, connectivity generation, weight
initialization, serialization, network containers and reference kernels.
"""
