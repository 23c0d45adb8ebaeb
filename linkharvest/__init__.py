"""
Link Harvester

Crawls a fixed list of seed pages and exports every outbound link together
with the title of the page it was found on.
"""

__version__ = "1.0.0"
__description__ = "Concurrent seed-page link harvester with tabular export"
