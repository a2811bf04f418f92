"""Returnable module for lost-item identifiers and finder lookups."""

# Models are not re-exported here: importing them before django.setup() raises AppRegistryNotReady.
# Use: from returnable.models import ...
