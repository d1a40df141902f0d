"""
Setup file.
"""

from setuptools import find_packages, setup

KEYWORDS = "build graph descriptor native c toolchain targets headers glib gtk"


if __name__ == "__main__":
    setup(
        name="stackgraph",
        version="0.1.0",
        description="Build graph descriptors for layered native software stacks",
        keywords=KEYWORDS,
        python_requires=">=3.10",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=["tqdm"],
        extras_require={"test": ["pytest"]},
        entry_points={"console_scripts": ["stackgraph = stackgraph.cli:main"]},
        include_package_data=True)
