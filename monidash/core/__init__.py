"""Monidash core — fetcher, layout, compositor and the dashboard loop.

Modules
-------
channel
    ``Channel`` hand-off queues and ``select`` over several of them.
fetcher
    ``BuildFetcher`` reads JSON frames from the build server.
layout
    ``layout_grid`` packs boxes column-major into the screen.
compositor
    Decorators that compose the rune and colours of each cell.
dashboard
    ``Dashboard`` merges updates with terminal events and redraws.
"""
