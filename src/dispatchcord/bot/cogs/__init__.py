"""
py-cord cogs that forward gateway events into the dispatch client.
"""
