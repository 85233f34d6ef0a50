"""
Table tennis scoreboard: best-of-five match scoring engine with undo,
resume from sqlite, remote control and live telemetry.
"""
