from setuptools import setup, find_packages  # ignore: type

setup(
    name="schema_migration",
    version="1.0.0",
    description="Zero-downtime schema migration for alias-addressed OpenSearch and Elasticsearch indices",
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires=">=3.10",
    install_requires=["requests", "pyyaml", "Click", "cerberus", "coloredlogs", "jsondiff", "jsonpath-ng",
                      "requests-aws4auth", "botocore"],
    extras_require={
        "test": ["pytest", "responses", "coverage"],
    },
    entry_points={
        "console_scripts": [
            "schema-migration = schema_migration.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "License :: OSI Approved :: Apache Software License",
    ],
)
