from setuptools import setup, find_packages


setup(
    name="tradestrategy",
    version="0.1.0",
    description="Daily-bar trading strategy simulator and backtester",
    author="Andrea Ferrante",
    author_email="nonicknamethankyou@gmail.com",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Financial and Insurance Industry",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3 :: Only",
    ],
    keywords="backtesting, trading, moving average, bollinger, parabolic sar",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10, <4",
    install_requires=["pandas", "numpy", "polars", "pyarrow", "matplotlib", "tqdm"],
    extras_require={"test": ["pytest"]},
)
