"""
FieldSync Backend: Services Layer
==================================

Service Inventory:
    - InspectorService: credential verification and registration
    - ReportService:    report ingestion transaction and dashboard listing
    - normalization:    tolerant parsing of numbers, dates, times and text

Services receive the request-scoped AsyncSession per call and hold no
per-request state, so one module-level instance serves every request.
"""
