"""
Bot-facing layer: the ``DispatchClient`` facade and the py-cord adapter.
"""
