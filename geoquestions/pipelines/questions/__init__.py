"""
Question resolution: descriptors, boundary resolvers, mask adjustment and
hider-side answering
"""
