pytest_plugins = ["didflow.testing.conftest"]
