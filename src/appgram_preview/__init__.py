"""appgram_preview — local FastAPI stand-in for the Appgram portal's survey API.

Serves the YAML surveys of a :class:`~appgram_surveys.catalog.SurveyCatalog`
on the same endpoints the SDK client talks to, accepts (and echoes, without
storing) survey responses, and exposes a nodes/edges graph of each survey
for authoring checks.
"""
