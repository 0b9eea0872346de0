import os

from setuptools import find_packages, setup

with open("README.md", encoding="utf-8") as fh:
    long_description = fh.read()

requirements_path = "requirements.txt"

if os.path.exists(requirements_path):
    with open(requirements_path, encoding="utf-8") as fh:
        requirements = [
            line.strip()
            for line in fh
            if line.strip() and not line.startswith("#") and not line.startswith("-r")
        ]
else:
    requirements = [
        "anthropic>=0.18.0",
        "openai>=1.0.0",
        "requests>=2.32.4",
        "rich>=13.0.0",
        "pyyaml>=6.0.0",
        "pydantic>=2.0.0",
    ]

setup(
    name="gitpilot",
    version="0.1.0",
    author="gitpilot contributors",
    description="Natural-language git assistant with guarded execution and AI-assisted recovery",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["gitpilot", "gitpilot.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Version Control :: Git",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: POSIX",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": ["pytest>=7.0.0", "pytest-cov>=4.0.0"],
    },
    entry_points={
        "console_scripts": [
            "gitpilot=gitpilot.cli:main",
        ],
    },
    include_package_data=True,
)
