"""Console rendering for the azbclient command line."""
