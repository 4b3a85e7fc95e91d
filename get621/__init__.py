"""get621 — command line client for the e621 / e926 post API.

Search posts, walk parent/child relationships, fetch whole pools, and
print or download the results.
"""

__version__ = "1.3.0"
