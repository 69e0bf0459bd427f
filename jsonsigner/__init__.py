# jsonsigner/__init__.py
"""
json-signer: offline signing of Cosmos SDK transactions in legacy amino JSON mode.
Reads keys from protobuf or amino keyrings and can migrate protobuf keys to amino.
"""

__version__ = "0.1.0.dev0"
