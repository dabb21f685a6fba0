"""Number drills: adaptive arithmetic fact practice."""
