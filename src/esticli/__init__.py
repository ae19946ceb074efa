"""esticli: live terminal dashboard for Elasticsearch indexing throughput."""

__version__ = "0.1.0"
