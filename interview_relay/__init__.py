"""Phone interview relay between Twilio and an OpenAI interviewer."""
