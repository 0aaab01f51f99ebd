from setuptools import find_namespace_packages, setup

package_name = "kdsearch"


def read_requirements():
    with open("requirements.txt", "r") as file:
        return [
            line.strip() for line in file if line.strip() and not line.startswith("#")
        ]


setup(
    name=package_name,
    version="0.0.3",
    packages=find_namespace_packages(
        include=[package_name, package_name + ".*"]
    ),  # Packages have no __init__.py
    python_requires=">=3.10",
    install_requires=read_requirements(),
    extras_require={"test": ["pytest"]},
    zip_safe=True,
    description="Exact k-nearest-neighbor and radius search over static point sets with a k-d tree",
    license="MIT",
    tests_require=["pytest"],
    entry_points={
        "console_scripts": ["kdsearch=kdsearch.main:app"],
    },
)
