"""File transfer service: messages, menu, server and client built on the protocol."""