from setuptools import setup
from setuptools import find_packages


def main():
    package_dir = {"": "src"}
    packages = find_packages("src")

    install_requires = [
        "numpy>=1.20",
        "pyparsing>=3.0",
    ]
    extras_require = {
        "test": ["pytest"],
    }

    setup(
        name="cifxtal",
        version="1.0.0",
        description="Reading, filtering and symmetry growing of small molecule crystal structures from CIF files",
        package_dir=package_dir,
        packages=packages,
        install_requires=install_requires,
        extras_require=extras_require,
        zip_safe=False,
        python_requires=">=3.9",
        entry_points={
            "console_scripts": [
                "cifxtal_summary = cifxtal.command_line.crystal_summary:main",
            ]
        },
    )


if __name__ == "__main__":
    main()
