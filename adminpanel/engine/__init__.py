"""AdminPanel engine — config, context, errors, events, i18n, logging, cache."""
