"""
Runner: the execution endpoint served from inside the isolated container.
"""
