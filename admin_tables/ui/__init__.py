"""
UI adapters for the table engine.

Currently provides a Dash-based web UI via create_dash_app().
The renderer only calls TableController operations and draws ComposedView.
"""
