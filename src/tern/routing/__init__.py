"""Routing — ordered route table with segment-by-segment matching.

Routes are registered during setup and frozen when the app freezes.
``RouteLookup`` is the middleware that plugs the table into the
pipeline.
"""
