"""HTTP API for the tracker."""
