"""
Core utilities: amount/time codec and shared exceptions.
"""
