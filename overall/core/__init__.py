"""Core engine: store, classifier, priority scorer, groups, sync and snapshot export."""
