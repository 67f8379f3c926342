DEFAULT_PORT = 8888

TCP_SERVER_ADDR_DEFAULT = "127.0.0.1:%d" % DEFAULT_PORT
UDP_SERVER_ADDR_DEFAULT = TCP_SERVER_ADDR_DEFAULT
UDP_CLIENT_ADDR_DEFAULT = "127.0.0.1:9999"

TCP_MAX_DATA_SIZE_DEFAULT = 1048576
UDP_MAX_DATA_SIZE_DEFAULT = 65536

DATA_SIZE_DEFAULT = 1024
REPEAT_DEFAULT = 1000

RETRY_INTERVAL_DEFAULT = 1.0
LISTEN_BACKLOG = 128

# 65535 - 8 byte UDP header - 20 byte IPv4 header
UDP_MAX_PAYLOAD = 65507
