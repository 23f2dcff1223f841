"""Application services built on the domain and storage layers."""
