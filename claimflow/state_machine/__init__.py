# State machine module - transitions, negotiation and the workflow engine
