"""
downpoll: keeps a local mirror of pixivFANBOX posts from supported creators
"""
__version__ = "0.1.0"
