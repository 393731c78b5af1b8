pytest_plugins = [
    "tests.fixtures.storage_fixtures",
    "tests.fixtures.user_fixtures",
]
