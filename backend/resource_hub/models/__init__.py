from resource_hub.models.import_job import ImportJob

__all__ = [
    "ImportJob",
]
