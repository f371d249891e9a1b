"""RemoteChain ballot client."""
