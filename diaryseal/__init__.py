"""diaryseal: passphrase-encrypted diary envelopes and the batch encryption tool."""
