"""Echo, upload and sample-file commands built on the protocol."""