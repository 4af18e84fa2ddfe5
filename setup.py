from setuptools import setup, find_packages

with open("Readme.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="watchman-system-monitor",
    version="1.0.0",
    author="Watchman",
    author_email="support@watchman.bj",
    description='Agent qui échantillonne CPU, mémoire et disque et transmet les mesures à des plugins.',
    long_description=long_description,
    long_description_content_type='text/markdown',
    include_package_data=True,
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires='>=3.8',
    install_requires=[
        "psutil>=5.9.0",
        "requests>=2.28.0",
        "schedule>=1.2.0",
        "pywin32>=306; platform_system=='Windows'",
        "WMI>=1.5.1; platform_system=='Windows'",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
        "dev": [
            "black>=23.0.0",
            "flake8>=6.0.0",
        ],
    },

    entry_points='''
        [console_scripts]
        watchman-system-monitor=sysmonitor.main:main
    '''
)
