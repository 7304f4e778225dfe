[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rusp"
version = "1.0.0"
description = "Reliable byte-stream connections over UDP with sliding windows, adaptive retransmission timeouts and sample echo, upload and file-transfer commands"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "udp",
    "reliable-transport",
    "sliding-window",
    "retransmission",
    "networking",
    "file-transfer",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Internet :: File Transfer Protocol (FTP)",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rusp-echos = "rusp.apps.echo:server_main"
rusp-echoc = "rusp.apps.echo:client_main"
rusp-ups = "rusp.apps.upload:server_main"
rusp-upc = "rusp.apps.upload:client_main"
rusp-lftps = "rusp.lftp.server:main"
rusp-lftpc = "rusp.lftp.client:main"
rusp-samplegen = "rusp.apps.samplegen:main"

[tool.hatch.build.targets.wheel]
packages = ["rusp"]

[tool.pytest.ini_options]
addopts = "-ra"
