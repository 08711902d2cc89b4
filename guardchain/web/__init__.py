"""Request-time collaborators: exchange objects, matchers, filters and the built chain."""
