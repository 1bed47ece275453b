"""
Meteor Watch backend.

Ranks the NASA NeoWs near-Earth object feed into a short card carousel and
streams live ISS position telemetry to the app.

Usage:
    uvicorn meteorwatch.main:app --reload

Environment variables:
    NASA_API_KEY   api.nasa.gov key (defaults to the rate-limited DEMO_KEY)
"""
