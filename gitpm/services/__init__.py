"""Services: remote resolution, publish pipeline, PR sync and weekly reports."""
