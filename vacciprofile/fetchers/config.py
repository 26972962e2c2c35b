PATHOGENS = {
    "resource_id": "pathogens",
    "path": "/api/pathogens/populated",
    "envelope_key": "pathogens",
    "cacheable": True,
}

MANUFACTURERS = {
    "resource_id": "manufacturers",
    "path": "/api/manufacturers/populated",
    "envelope_key": "manufacturers",
    "cacheable": True,
}

LICENSERS = {
    "resource_id": "licensers",
    "path": "/api/licensers",
    "envelope_key": "licensers",
    "cacheable": True,
}

VACCINES = {
    "resource_id": "vaccines",
    "path": "/api/vaccines/populated",
    "envelope_key": "vaccines",
    "cacheable": True,
}

NITAGS = {
    "resource_id": "nitags",
    "path": "/api/nitags",
    "envelope_key": "nitags",
    "cacheable": True,
}

CANDIDATES = {
    "resource_id": "candidates",
    "path": "/candidate-vaccines",
    "envelope_key": "candidateVaccines",
    "cacheable": True,
}

# Per-vaccine detail lookups are never cached.
PRODUCT_PROFILES = {
    "resource_id": "product_profiles",
    "path": "/api/product-profiles",
    "envelope_key": "productProfiles",
    "query_param": "vaccineName",
    "cacheable": False,
}

LICENSING_DATES = {
    "resource_id": "licensing_dates",
    "path": "/api/licensing-dates",
    "envelope_key": "licensingDates",
    "query_param": "vaccineName",
    "cacheable": False,
}
