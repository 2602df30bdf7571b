from setuptools import setup, find_packages

setup(
    name="pool_monitor",
    version="0.1",
    packages=find_packages(exclude=["tests"]),
    install_requires=[
        "requests",
        "python-dotenv",
        "prometheus-client",
        "python-json-logger",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["pool-monitor=pool_monitor.service:main"],
    },
)
