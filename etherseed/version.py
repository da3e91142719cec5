ETHERSEED_VERSION = '0.3.0'   # version of the client package

KEYSTORE_VERSION = 3          # version tag written into keystore records
